"""FFmpeg filter graph construction for jingle overlays."""

from jingler.models.mix import JinglePosition, ResolvedPlacement

MIX_LABEL = "[mixed]"


def compute_offset_ms(
    position: JinglePosition, main_duration: float, jingle_duration: float
) -> list[int]:
    """Delay(s) in milliseconds for a jingle at ``position``.

    ``start-end`` yields two offsets, every other position yields one.
    """
    end_offset = max(0.0, main_duration - jingle_duration)
    if position == JinglePosition.START:
        offsets = [0.0]
    elif position == JinglePosition.MIDDLE:
        offsets = [max(0.0, (main_duration - jingle_duration) / 2)]
    elif position == JinglePosition.END:
        offsets = [end_offset]
    elif position == JinglePosition.START_END:
        offsets = [0.0, end_offset]
    else:
        raise ValueError(f"Unknown jingle position: {position}")
    return [int(round(o * 1000)) for o in offsets]


def expected_mix_duration(main_duration: float, placements: list[ResolvedPlacement]) -> float:
    """Duration of a longest-input mix: never shorter than the main track."""
    last_end = max((p.end_seconds for p in placements), default=0.0)
    return max(main_duration, last_end)


class MixGraphBuilder:
    """Builds the volume + adelay + amix graph for a list of placements."""

    def build_jingle_filter(self, volume: float, offset_ms: int) -> str:
        """Per-placement chain. Volume is skipped at unity."""
        parts = []
        if volume != 1.0:
            parts.append(f"volume={volume:.2f}")
        parts.append(f"adelay={offset_ms}|{offset_ms}")
        return ",".join(parts)

    def build_filter_graph(
        self, main_path: str, placements: list[ResolvedPlacement]
    ) -> tuple[list[str], str]:
        """Build inputs and the filter_complex string.

        Input 0 is the main track. Each placement gets its own input so the
        same jingle file can be delayed to two offsets at once.

        Returns:
            Tuple of (input paths, filter_complex string)
        """
        if not placements:
            return [main_path], ""

        inputs = [main_path]
        filter_parts = []
        mix_inputs = ["[0:a]"]

        for i, placement in enumerate(placements, start=1):
            inputs.append(placement.jingle_path)
            label = f"[j{i}]"
            chain = self.build_jingle_filter(placement.volume, placement.offset_ms)
            filter_parts.append(f"[{i}:a]{chain}{label}")
            mix_inputs.append(label)

        n = len(mix_inputs)
        filter_parts.append(
            "".join(mix_inputs) + f"amix=inputs={n}:duration=longest:dropout_transition=0"
            f"{MIX_LABEL}"
        )

        filter_complex = ";\n".join(filter_parts)
        return inputs, filter_complex
