# ABOUTME: Tests loading captured point tables and flattening outcomes.
# ABOUTME: Uses temporary CSV and Parquet files written with pandas.

import pandas as pd
import pytest

from src.common.guides import build_guide
from src.common.schemas import Point, ShapeType, Stroke
from src.common.stroke_io import OUTCOME_COLUMNS, load_stroke_frame, load_stroke_points, outcomes_frame
from src.stroke_engine.outcomes import AnalysisOutcome, OutcomeStatus
from src.stroke_engine.pipeline import analyze_stroke


def test_load_csv_sorts_by_timestamp(tmp_path):
    path = tmp_path / "stroke.csv"
    pd.DataFrame({"x": [3, 1, 2], "y": [30, 10, 20], "timestamp": [200, 0, 100], "pressure": [1, 1, 1]}).to_csv(
        path, index=False
    )

    points = load_stroke_points(path)

    assert points == [Point(1.0, 10.0, 0.0), Point(2.0, 20.0, 100.0), Point(3.0, 30.0, 200.0)]


def test_load_parquet_without_timestamp(tmp_path):
    path = tmp_path / "stroke.parquet"
    pd.DataFrame({"x": [0.0, 5.0], "y": [0.0, 5.0]}).to_parquet(path, index=False)

    frame = load_stroke_frame(path)

    assert list(frame.columns) == ["x", "y", "timestamp"]
    assert frame["timestamp"].tolist() == [0.0, 0.0]


def test_load_rejects_bad_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_stroke_points(tmp_path / "missing.csv")

    wrong_suffix = tmp_path / "stroke.json"
    wrong_suffix.write_text("{}")
    with pytest.raises(ValueError):
        load_stroke_points(wrong_suffix)

    no_y = tmp_path / "no_y.csv"
    pd.DataFrame({"x": [1, 2]}).to_csv(no_y, index=False)
    with pytest.raises(ValueError, match="missing columns: y"):
        load_stroke_points(no_y)

    gaps = tmp_path / "gaps.csv"
    pd.DataFrame({"x": [1.0, None], "y": [1.0, 2.0]}).to_csv(gaps, index=False)
    with pytest.raises(ValueError):
        load_stroke_points(gaps)


def test_outcomes_frame_has_one_row_per_event():
    guide = build_guide(ShapeType.LINE)
    stroke = Stroke.from_points([Point(400.0, 500.0), Point(500.0, 500.0), Point(600.0, 500.0)], ShapeType.LINE)
    analyzed = analyze_stroke(stroke, guide)
    throttled = AnalysisOutcome.skipped(OutcomeStatus.THROTTLED)

    frame = outcomes_frame([analyzed, throttled])

    assert list(frame.columns) == OUTCOME_COLUMNS
    assert frame["status"].tolist() == ["analyzed", "throttled"]
    assert frame.loc[0, "overall_score"] == pytest.approx(analyzed.feedback.overall_score)
    assert pd.isna(frame.loc[1, "overall_score"])
    assert pd.isna(frame.loc[1, "top_suggestion"])
