import pytest

from avq.diagnostics import Diagnostics


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()


@pytest.fixture
def daily_csv() -> str:
    return (
        "timestamp,open,high,low,close,volume\r\n"
        "2024-01-05,160.10,161.40,159.20,160.90,4123400\r\n"
        "2024-01-04,158.00,160.50,157.80,160.10,3988100\r\n"
        "2024-01-03,157.30,158.20,156.90,157.90,3511200\r\n"
    )
