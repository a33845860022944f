import pytest

from sketchgrid.core import FilterKind, Raster
from sketchgrid.processing import (
    FILTER_REGISTRY,
    EdgeCache,
    FilterParameter,
    ParameterType,
    create_filter,
)

from conftest import noisy_raster


@pytest.mark.parametrize("name", list(FILTER_REGISTRY))
def test_registry_creates_inactive_filters(name):
    f = create_filter(name)
    assert f.name == name
    assert f.active is False
    assert f.has_changed() is False
    assert f.validate_parameters() == (True, [])


def test_create_unknown_filter_returns_none():
    assert create_filter("sepia") is None


@pytest.mark.parametrize("name", list(FILTER_REGISTRY))
def test_inactive_filter_is_identity(name):
    f = create_filter(name)
    for key, param in f.parameters.items():
        if param.param_type != ParameterType.BOOL and param.max_val is not None:
            f.set_property(key, param.max_val)
    raster = noisy_raster()
    before = raster.copy()

    result = f.apply(raster, raster.copy())

    assert result is raster
    assert raster.same_pixels(before)


def test_unknown_property_is_ignored():
    f = create_filter("light")
    assert f.get_property("notan_bands") is None
    assert f.set_property("notan_bands", 4) is False
    assert "notan_bands" not in f.parameters


def test_set_property_reports_validity():
    f = create_filter("shape")
    assert f.set_property("notan_bands", 5) is True
    assert f.get_property("notan_bands") == 5

    assert f.set_property("notan_bands", 40) is False
    assert f.set_property("notan_bands", "many") is False
    assert f.get_property("notan_bands") == 5
    assert f.validate_parameters() == (True, [])


def test_validate_parameters_reports_out_of_range_values():
    f = create_filter("shape")
    f.get_parameter("notan_bands").value = 40

    is_valid, errors = f.validate_parameters()

    assert not is_valid
    assert errors == ["Notan Bands must be <= 16"]


def test_parameter_type_checks():
    assert FilterParameter("Flag", ParameterType.BOOL, 1).validate()[0] is False
    assert FilterParameter("Count", ParameterType.INT, 2.5).validate()[0] is False
    assert FilterParameter("Count", ParameterType.INT, True).validate()[0] is False
    assert FilterParameter("Amount", ParameterType.FLOAT, 3).validate() == (True, "")


@pytest.mark.parametrize("name", list(FILTER_REGISTRY))
def test_reset_is_idempotent(name):
    f = create_filter(name)
    f.active = True
    for key, param in f.parameters.items():
        if param.param_type == ParameterType.BOOL:
            f.set_property(key, True)
        else:
            f.set_property(key, param.min_val + 1)
    f.edge_cache = EdgeCache(source_key=(1, 1), magnitude=None)

    f.reset()
    first = f.config()
    f.reset()

    assert f.has_changed() is False
    assert f.config() == first
    assert f.edge_cache is None
    assert f.shape_original is None
    assert f.config() == create_filter(name).config()


def test_has_changed_uses_inert_values():
    light = create_filter("light")
    light.active = True
    assert light.has_changed() is False
    light.set_property("shadows", -10)
    assert light.has_changed() is True

    # Edge has no neutral setting; active means effective
    edge = create_filter("edge")
    edge.active = True
    assert edge.has_changed() is True


def test_fingerprint_ignores_properties_outside_allow_list():
    edge = create_filter("edge")
    edge.active = True
    before = edge.fingerprint()

    edge.set_property("opacity", 20)
    assert edge.fingerprint() == before

    edge.set_property("threshold", 20)
    assert edge.fingerprint() != before


def test_fingerprint_tracks_active_flag():
    f = create_filter("blur")
    before = f.fingerprint()
    f.active = True
    assert f.fingerprint() != before


def test_clone_is_independent():
    f = create_filter("hue_saturation")
    f.active = True
    f.set_property("saturation", -40)
    f.edge_cache = EdgeCache(source_key=(2, 2), magnitude=None)

    copied = f.clone()
    copied.set_property("saturation", 10)

    assert f.get_property("saturation") == -40
    assert copied.active is True
    assert copied.edge_cache is None


def test_filter_without_handler_raises():
    f = create_filter("light")
    f.kind = None
    f.active = True
    with pytest.raises(NotImplementedError):
        f.apply(Raster.blank(2, 2, (10, 10, 10, 255)))


def test_kinds_are_distinct():
    kinds = {create_filter(name).kind for name in FILTER_REGISTRY}
    assert kinds == set(FilterKind)
