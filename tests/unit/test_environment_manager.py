from accel_ci.MANAGERS.environment_manager import EnvironmentManager

def test_merged_environment(tmp_path):
    (tmp_path / ".env").write_text(
        "CI_REGISTRY_IMAGE=registry.example.com/accel\n"
        "# comment\n"
        "NIGHTLY_VERSIONS='2020-01-02 2020-05-01'\n"
        "CI_COMMIT_REF_SLUG=from-file\n"
    )
    manager = EnvironmentManager(base_dir=str(tmp_path))
    env = manager.get_merged_environment([".env", "missing.env"], process_env={"CI_COMMIT_REF_SLUG": "master"})
    assert env["CI_REGISTRY_IMAGE"] == "registry.example.com/accel"
    assert env["NIGHTLY_VERSIONS"] == "2020-01-02 2020-05-01"
    assert env["CI_COMMIT_REF_SLUG"] == "master"

def test_later_files_override(tmp_path):
    (tmp_path / "a.env").write_text("NIGHTLY=nightly-a\n")
    (tmp_path / "b.env").write_text("NIGHTLY=nightly-b\n")
    env = EnvironmentManager(base_dir=str(tmp_path)).get_merged_environment(["a.env", "b.env"], process_env={})
    assert env["NIGHTLY"] == "nightly-b"
