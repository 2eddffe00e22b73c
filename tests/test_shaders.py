import pytest

from lifegl.core.life_rules import EdgePolicy, Variant
from lifegl.core.shaders import GLSL_VERSION, build_composite_source, build_simulation_source


@pytest.mark.parametrize("policy", list(EdgePolicy))
def test_simulation_source_carries_edge_policy(policy: EdgePolicy) -> None:
    source = build_simulation_source(Variant.MONO, policy)
    assert source.startswith(GLSL_VERSION)
    assert f"#define EDGE_POLICY {int(policy)}" in source


def test_simulation_source_variant_defines() -> None:
    mono = build_simulation_source(Variant.MONO, EdgePolicy.DEAD)
    extended = build_simulation_source(Variant.EXTENDED, EdgePolicy.DEAD)
    assert "#define EXTENDED 0" in mono and "#define ALIVE_CHANNEL 0" in mono
    assert "#define EXTENDED 1" in extended and "#define ALIVE_CHANNEL 3" in extended
    assert "uniform LifeMaterial" in extended
    assert "floatBitsToUint(info.z)" in extended


def test_simulation_threshold_is_normalised() -> None:
    source = build_simulation_source(Variant.MONO, EdgePolicy.DEAD, threshold=127)
    assert "#define THRESHOLD 0.500000" in source


def test_version_directive_comes_first() -> None:
    for source in (build_composite_source(Variant.MONO),
                   build_simulation_source(Variant.EXTENDED, EdgePolicy.WRAP)):
        assert source.splitlines()[0] == GLSL_VERSION
        assert source.count("#version") == 1
