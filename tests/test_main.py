import argparse

import pytest

pytest.importorskip("OpenImageIO", reason="OpenImageIO is required for the command line", exc_type=ImportError)

from sketchgrid.main import build_parser, configure_pipeline, main, parse_assignment, parse_value
from sketchgrid.processing import FilterPipeline


def test_parse_value():
    assert parse_value("true") is True
    assert parse_value("Off") is False
    assert parse_value("4") == 4
    assert isinstance(parse_value("4"), int)
    assert parse_value("-12.5") == -12.5
    with pytest.raises(argparse.ArgumentTypeError):
        parse_value("lots")


def test_parse_assignment():
    assert parse_assignment("shape.notan_bands=4") == ("shape", "notan_bands", 4)
    for bad in ("shape=4", "shape.notan_bands", ".x=1", "edge.=1"):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_assignment(bad)


def test_parser_collects_repeated_options():
    args = build_parser().parse_args(
        ["in.png", "out.png", "--set", "light.exposure=20", "--set", "edge.multiply_mode=on", "--enable", "blur"]
    )
    assert args.assignments == [("light", "exposure", 20), ("edge", "multiply_mode", True)]
    assert args.enable == ["blur"]


def test_configure_pipeline_enables_filters():
    pipeline = FilterPipeline.with_default_filters()
    problems = configure_pipeline(pipeline, ["edge"], [("shape", "notan_bands", 5)])

    assert problems == []
    assert pipeline.get_filter("edge").active is True
    assert pipeline.get_filter("shape").active is True
    assert pipeline.get_filter("shape").get_property("notan_bands") == 5
    assert pipeline.get_filter("light").active is False


def test_configure_pipeline_reports_unknown_names():
    pipeline = FilterPipeline.with_default_filters()
    problems = configure_pipeline(pipeline, ["sepia"], [("light", "gamma", 2)])

    assert len(problems) == 2
    assert problems[0].startswith("Unknown filter 'sepia'")
    assert problems[1] == "Filter 'light' has no property 'gamma'"


def test_configure_pipeline_reports_rejected_values():
    pipeline = FilterPipeline.with_default_filters()
    problems = configure_pipeline(pipeline, [], [("shape", "notan_bands", 40), ("blur", "blur_radius", 3)])

    assert problems == ["Filter 'shape' rejected notan_bands=40"]
    assert pipeline.get_filter("shape").get_property("notan_bands") == 3
    assert pipeline.get_filter("blur").get_property("blur_radius") == 3


def test_main_fails_on_unreadable_input(tmp_path):
    code = main([
        str(tmp_path / "missing.png"),
        str(tmp_path / "out.png"),
        "--settings", str(tmp_path / "settings.ini"),
    ])
    assert code == 1
    assert not (tmp_path / "out.png").exists()


def test_main_rejects_unknown_filter(tmp_path):
    code = main([
        "in.png",
        str(tmp_path / "out.png"),
        "--enable", "sepia",
        "--settings", str(tmp_path / "settings.ini"),
    ])
    assert code == 1
