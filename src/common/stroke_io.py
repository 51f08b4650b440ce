# ABOUTME: Loads captured stroke point tables from CSV or Parquet via pandas.
# ABOUTME: Flattens analysis outcomes back into DataFrames for reporting.

from pathlib import Path
from typing import Iterable, List

import numpy as np
import pandas as pd

from .schemas import Point

POINT_COLUMNS = ("x", "y", "timestamp")
OUTCOME_COLUMNS = [
    "status",
    "overall_score",
    "is_correct",
    "alignment_accuracy",
    "temporal_accuracy",
    "velocity_consistency",
    "confidence_score",
    "predicted_label",
    "show_visual_correction",
    "top_suggestion",
    "elapsed_ms",
]


def load_stroke_frame(path: Path) -> pd.DataFrame:
    """
    Read a point table and return it sorted by timestamp.

    ``timestamp`` is optional (milliseconds); when absent it is filled with
    zeros so pacing signals are skipped downstream.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Stroke file not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path)
    elif suffix in {".parquet", ".pq"}:
        df = pd.read_parquet(path)
    else:
        raise ValueError(f"Unsupported stroke file '{path.name}'. Expected .csv or .parquet.")

    missing = [col for col in ("x", "y") if col not in df.columns]
    if missing:
        raise ValueError(f"Stroke file {path.name} missing columns: {', '.join(missing)}")
    if "timestamp" not in df.columns:
        df = df.assign(timestamp=0.0)

    df = df.loc[:, list(POINT_COLUMNS)].astype(float)
    if not np.isfinite(df.to_numpy()).all():
        raise ValueError(f"Stroke file {path.name} contains non-numeric or non-finite values.")
    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


def frame_to_points(df: pd.DataFrame) -> List[Point]:
    return [Point(x=float(row.x), y=float(row.y), timestamp=float(row.timestamp)) for row in df.itertuples(index=False)]


def load_stroke_points(path: Path) -> List[Point]:
    return frame_to_points(load_stroke_frame(path))


def outcomes_frame(outcomes: Iterable) -> pd.DataFrame:
    """Flatten ``AnalysisOutcome`` objects into one row per event."""

    rows = []
    for outcome in outcomes:
        fused = outcome.fused
        feedback = outcome.feedback
        classifier = outcome.classifier
        rows.append(
            {
                "status": outcome.status.value,
                "overall_score": feedback.overall_score if feedback else np.nan,
                "is_correct": fused.is_correct if fused else None,
                "alignment_accuracy": fused.alignment_accuracy if fused else np.nan,
                "temporal_accuracy": fused.temporal_accuracy if fused else np.nan,
                "velocity_consistency": fused.velocity_consistency if fused else np.nan,
                "confidence_score": fused.confidence_score if fused else np.nan,
                "predicted_label": classifier.predicted_label.value if classifier else None,
                "show_visual_correction": feedback.show_visual_correction if feedback else None,
                "top_suggestion": feedback.suggestions[0] if feedback and feedback.suggestions else None,
                "elapsed_ms": outcome.elapsed_ms,
            }
        )
    return pd.DataFrame(rows, columns=OUTCOME_COLUMNS)
