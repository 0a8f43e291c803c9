from config import Settings, build_orchestrator, build_storage, build_synthesis_client
from object_storage import LocalTemplateStorage, S3TemplateStorage


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("BATCH_SIZE", "3")
    monkeypatch.setenv("DELAY_BETWEEN_CATEGORIES", "0.5")
    settings = Settings(_env_file=None)

    config = settings.generation_config(use_ai_synthesis=False)
    assert config.batch_size == 3
    assert config.delay_between_categories == 0.5
    assert config.use_ai_synthesis is False


def test_local_storage_without_bucket(tmp_path):
    settings = Settings(_env_file=None, S3_BUCKET_NAME=None, LOCAL_STORAGE_DIR=str(tmp_path))
    assert isinstance(build_storage(settings), LocalTemplateStorage)


def test_s3_storage_with_bucket():
    settings = Settings(_env_file=None, S3_BUCKET_NAME="invites", AWS_REGION="eu-west-1")
    storage = build_storage(settings)
    assert isinstance(storage, S3TemplateStorage)
    assert storage.bucket == "invites"


def test_no_api_key_means_placeholder_only(tmp_path):
    settings = Settings(_env_file=None, AI_INTEGRATIONS_GEMINI_API_KEY=None, LOCAL_STORAGE_DIR=str(tmp_path))
    assert build_synthesis_client(settings) is None
    assert build_orchestrator(settings).synthesis is None
