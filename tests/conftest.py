# tests/conftest.py
import pytest

from access_analyzer.datamodels.events import ProcessedRow, RawEvent

HEADER = "Source,Source Name,IP,Service,Target,Timestamp"

# 18:30Z is 10:30 in Los Angeles in January (PST)
SAMPLE_CSV = "\n".join([
    HEADER,
    "svc-backup,HOST-A,10.0.0.5,CIFS,FILESRV01,2024-01-15T18:30:50Z",
    "svc-backup,HOST-A,10.0.0.5,CIFS,FILESRV01,2024-01-16T18:30:05Z",
    "svc-backup,HOST-A,10.0.0.5,LDAP,DC01,2024-01-15T19:00:00Z",
    "admin,HOST-B,10.0.0.9,RPCSS,DC01,2024-01-17T08:15:00Z",
    "admin,HOST-C,10.0.0.9,CIFS,FILESRV01,2024-01-17T08:15:30Z",
    "",
])


def raw(source="svc", source_name="HOST", ip="10.0.0.1", service="CIFS", target="SRV", timestamp="2024-01-15T18:30:00Z"):
    return RawEvent(timestamp=timestamp, source=source, source_name=source_name, ip=ip, service=service, target=target)


def row(source="svc", source_name="HOST", ip="10.0.0.1", service="CIFS", target="SRV", time="10:30:00 PST", freq=1):
    return ProcessedRow(source=source, source_name=source_name, ip=ip, service=service, target=target, time=time, freq=freq)


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def sample_csv_path(tmp_path):
    path = tmp_path / "service_access.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path
