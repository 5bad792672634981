"""Hypothesis strategies for property-based testing."""

from datetime import UTC, datetime, timedelta

from hypothesis import strategies as st

from jingler.models.mix import JinglePlacement, JinglePosition, JingleRef, MixSpec
from jingler.models.plan import Plan, UsageRecord, UsageType

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)

durations = st.floats(min_value=0.5, max_value=3600.0, allow_nan=False, allow_infinity=False)
volumes = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
positions = st.sampled_from(list(JinglePosition))
plans = st.sampled_from(list(Plan))


@st.composite
def generate_usage_history(draw, max_size=20):
    """Usage records spread over today and the previous few days."""
    n = draw(st.integers(min_value=0, max_value=max_size))
    records = []
    for _ in range(n):
        days_ago = draw(st.integers(min_value=0, max_value=3))
        # Keep timestamps within the same UTC day as NOW when days_ago == 0
        minutes = draw(st.integers(min_value=0, max_value=11 * 60))
        records.append(
            UsageRecord(
                user_id="u1",
                type=draw(st.sampled_from(list(UsageType))),
                timestamp=NOW - timedelta(days=days_ago, minutes=minutes),
            )
        )
    return records


@st.composite
def generate_mix_spec(draw, min_size=1, max_size=4):
    """A MixSpec with distinct jingles, arbitrary positions and volumes."""
    n = draw(st.integers(min_value=min_size, max_value=max_size))
    placements = []
    for i in range(n):
        jingle = JingleRef(
            id=f"jingle-{i}",
            owner_id="u1",
            file_path=f"/jingles/jingle-{i}.mp3",
            duration_seconds=draw(st.floats(min_value=0.5, max_value=300.0)),
        )
        placements.append(
            JinglePlacement(jingle=jingle, position=draw(positions), volume=draw(volumes))
        )
    return MixSpec(placements=placements)
