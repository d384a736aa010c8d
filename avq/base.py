from __future__ import annotations


class AVQError(RuntimeError):
    pass


class BuildError(AVQError):
    pass


class InvalidSymbolError(BuildError):
    def __init__(self, symbol: str):
        super().__init__(f"Invalid symbol {symbol!r}: expected a non-empty printable ticker")
        self.symbol = symbol


class InvalidParameterError(BuildError):
    pass


class ParseError(AVQError):
    pass


class InvalidNumericFieldError(ParseError):
    def __init__(self, row: int, column: str, value: str):
        super().__init__(f"Row {row}: column '{column}' is not numeric: {value!r}")
        self.row = row
        self.column = column
        self.value = value


class ProviderResponseError(ParseError):
    pass


class WatchlistError(AVQError):
    pass
