import boto3
import pytest
from botocore.stub import Stubber

from filedrop.core.storage import ObjectStorage


@pytest.fixture
def s3():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def test_delete_removes_object(s3):
    client, stubber = s3
    stubber.add_response("delete_object", {}, {"Bucket": "filedrop-test", "Key": "user-1/report.pdf"})
    assert ObjectStorage(client, "filedrop-test").delete("user-1/report.pdf") is True


def test_delete_reports_client_error(s3, caplog):
    client, stubber = s3
    stubber.add_client_error(
        "delete_object",
        service_error_code="AccessDenied",
        http_status_code=403,
        expected_params={"Bucket": "filedrop-test", "Key": "user-1/report.pdf"},
    )
    assert ObjectStorage(client, "filedrop-test").delete("user-1/report.pdf") is False
    assert "s3://filedrop-test/user-1/report.pdf" in caplog.text


def test_from_settings_uses_bucket(settings):
    configured = settings.model_copy(update={"aws_s3_bucket_name": "uploads", "aws_region": "eu-west-1"})
    storage = ObjectStorage.from_settings(configured)
    assert storage.bucket_name == "uploads"
    assert storage.client.meta.region_name == "eu-west-1"
