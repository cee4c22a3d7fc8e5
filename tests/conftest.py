import pytest

from servicectl.config import PathsConfig, ToolConfig
from tests.fakes import FakeSupervisor


@pytest.fixture
def tool_config(tmp_path):
    """A ToolConfig whose directories all live under tmp_path."""
    env_dir = tmp_path / "default"
    env_dir.mkdir()
    return ToolConfig(paths=PathsConfig(
        manifest_dir=str(tmp_path / "manifests"),
        unit_dir=str(tmp_path / "units"),
        env_dir=str(env_dir),
    ))


@pytest.fixture
def supervisor():
    return FakeSupervisor()
