import pytest
from accel_ci.UTILS.string_interpolation import render, interpolate_env

TEMPLATE = "FROM nvidia/cuda:CUDA_VERSION-devel-ubuntuUBUNTU_VERSION\nRUN rustup default nightly-NIGHTLY_VERSION\n"
BINDINGS = {"UBUNTU_VERSION": "18.04", "CUDA_VERSION": "10.1", "NIGHTLY_VERSION": "2020-05-01"}

def test_render_replaces_every_token():
    out = render(TEMPLATE, BINDINGS)
    assert out == "FROM nvidia/cuda:10.1-devel-ubuntu18.04\nRUN rustup default nightly-2020-05-01\n"
    for token in BINDINGS:
        assert token not in out

def test_render_is_idempotent():
    assert render(TEMPLATE, BINDINGS) == render(TEMPLATE, BINDINGS)

def test_render_replaces_repeated_tokens():
    assert render("CUDA_VERSION/CUDA_VERSION", {"CUDA_VERSION": "10.2"}) == "10.2/10.2"

def test_render_is_case_sensitive():
    assert render("cuda_version CUDA_VERSION", {"CUDA_VERSION": "10.0"}) == "cuda_version 10.0"

def test_render_leaves_other_text_untouched():
    text = "# comment\r\nENV A=1\r\n"
    assert render(text, BINDINGS) == text

def test_render_does_not_rescan_values():
    out = render("CUDA_VERSION NIGHTLY_VERSION", {"CUDA_VERSION": "NIGHTLY_VERSION", "NIGHTLY_VERSION": "x"})
    assert out == "NIGHTLY_VERSION x"

def test_render_prefers_longest_token():
    assert render("UBUNTU_VERSION", {"VERSION": "a", "UBUNTU_VERSION": "b"}) == "b"

def test_render_rejects_empty_token():
    with pytest.raises(ValueError):
        render("abc", {"": "x"})

def test_render_without_bindings():
    assert render(TEMPLATE, {}) == TEMPLATE

def test_interpolate_env_default_and_value():
    ctx = {"CI_COMMIT_REF_SLUG": "master"}
    assert interpolate_env("${CI_COMMIT_REF_SLUG:-manual}", ctx) == "master"
    assert interpolate_env("${CI_REGISTRY_IMAGE:-local}", ctx) == "local"

def test_interpolate_env_missing_raises():
    with pytest.raises(KeyError):
        interpolate_env("${MISSING}", {})
