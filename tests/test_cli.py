import yaml
from click.testing import CliRunner

from inventory_agent.cli import cli

from conftest import make_instance, published_dir


def _configure(runner, tmp_path, discovery_root, provider="file"):
    config_file = tmp_path / "agent_config.yaml"
    result = runner.invoke(
        cli,
        [
            "configure",
            "--discovery-root", str(discovery_root),
            "--declared-dir", str(tmp_path / "declared"),
            "--ignore-file", str(tmp_path / "ignore.list"),
            "--provider", provider,
            "--destination", str(tmp_path / "out"),
            "--log-level", "error",
            "--config-file", str(config_file),
        ],
    )
    assert result.exit_code == 0, result.output
    return config_file


def test_configure_writes_config(tmp_path, discovery_root):
    config_file = _configure(CliRunner(), tmp_path, discovery_root)

    data = yaml.safe_load(config_file.read_text())
    assert data["discovery"]["root"] == str(discovery_root)
    assert data["publish"]["provider"] == "file"
    assert data["publish"]["api_key"] is None


def test_discover_lists_canonical_instances(tmp_path, discovery_root):
    runner = CliRunner()
    make_instance(discovery_root, "java/services", "worker")
    config_file = _configure(runner, tmp_path, discovery_root)

    result = runner.invoke(cli, ["discover", "--config-file", str(config_file)])

    assert result.exit_code == 0, result.output
    instances = yaml.safe_load(result.output)["instances"]
    assert [i["instance.key"] for i in instances] == ["worker"]


def test_run_publishes_snapshots(tmp_path, discovery_root):
    runner = CliRunner()
    job_dir = make_instance(discovery_root, "java/batch", "nightly")
    config_file = _configure(runner, tmp_path, discovery_root)

    result = runner.invoke(cli, ["run", "--strict", "--config-file", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Instances: 1" in result.output
    assert (published_dir(tmp_path / "out", job_dir) / "run-params-file" / "run.properties").exists()


def test_missing_config_exits_with_error(tmp_path):
    result = CliRunner().invoke(cli, ["run", "--config-file", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1


def test_version_without_config(tmp_path):
    result = CliRunner().invoke(cli, ["version", "--config-file", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 0
    assert "Client Version: 0.0.0" in result.output
