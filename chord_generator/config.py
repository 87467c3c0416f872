"""Tunable constants for the harmony engine.

The probabilities and score weights used throughout the package were chosen
by ear rather than derived, so they are collected in :class:`EngineConfig`
instead of being scattered as literals. Each field can be overridden from the
``"engine"`` section of the JSON settings file::

    {
        "mode": "dorian",
        "engine": {"variety_jump_probability": 0.1, "bass_weight": 1.5}
    }

Unknown keys are reported with a warning and ignored so an old settings file
never prevents the program from starting.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

__all__ = ["EngineConfig", "load_engine_config"]


def _default_inversion_bias() -> Dict[int, float]:
    return {0: 0.0, 1: -0.2, 2: 0.1, 3: 0.3}


@dataclass
class EngineConfig:
    """Named, overridable constants consumed by the engine components."""

    # Progression walk
    variety_probability: float = 0.7
    variety_jump_probability: float = 0.05
    start_on_tonic_probability: float = 0.8
    cadential_ending_probability: float = 0.7
    max_generation_attempts: int = 10

    # Cadence library
    cadence_skip_probability: float = 0.25
    keep_existing_cadence_probability: float = 0.5
    requested_cadence_probability: float = 0.5
    suggested_cadence_probability: float = 0.4

    # Extension engine
    ninth_probability: float = 0.3
    two_five_one_ninth_probability: float = 0.5
    tonic_ninth_probability: float = 0.3
    secondary_dominant_probability: float = 0.35
    final_extension_probability: float = 0.5

    # Melodic contour
    leap_threshold: int = 2
    large_leap_threshold: int = 7
    large_leap_weight: float = 3.0
    leap_resolution_reward: float = -2.0
    unresolved_leap_penalty: float = 3.0
    leading_tone_resolution_reward: float = -4.0
    leading_tone_failure_penalty: float = 5.0
    direction_run_limit: int = 3
    direction_change_reward: float = -1.0
    cadential_tonic_reward: float = -3.0
    cadential_step_reward: float = -1.5
    cadential_other_penalty: float = 2.0
    cadential_no_tonic_penalty: float = 1.5
    static_melody_penalty: float = 1.0

    # Voice-leading score
    bass_weight: float = 2.0
    inner_weight: float = 0.8
    inner_leap_threshold: int = 5
    inner_leap_weight: float = 1.5
    melody_weight: float = 1.0
    outer_parallel_penalty: float = 12.0
    inner_fifth_penalty: float = 6.0
    inner_octave_penalty: float = 8.0
    cadential_six_four_reward: float = -3.0
    passing_six_four_reward: float = -1.0
    unprepared_six_four_penalty: float = 6.0
    authentic_cadence_reward: float = -4.0
    perfect_cadence_reward: float = -3.0
    leading_tone_voice_reward: float = -4.0
    leading_tone_voice_penalty: float = 6.0

    # Spacing
    low_register_midi: int = 48
    close_interval: int = 4
    wide_interval: int = 12
    very_wide_interval: int = 19
    wide_interval_weight: float = 0.1
    very_wide_interval_weight: float = 0.3
    compressed_range: int = 12
    compressed_range_weight: float = 2.0
    low_cluster_size: int = 3
    low_cluster_weight: float = 3.0

    # Inversion bias and selection
    inversion_bias: Dict[int, float] = field(default_factory=_default_inversion_bias)
    first_chord_inversion_weight: float = 0.5
    last_chord_inversion_weight: float = 0.8
    penultimate_first_inversion_bonus: float = -0.3
    open_voicing_bonus: float = -1.5
    drop2_voicing_bonus: float = -1.2
    selection_cadence_reward: float = -2.0
    selection_perfect_cadence_reward: float = -3.0
    selection_leading_tone_reward: float = -3.0
    selection_leading_tone_penalty: float = 4.0
    root_position_first_probability: float = 0.9
    first_chord_inversion_threshold: float = 0.8
    last_chord_inversion_threshold: float = 0.9
    inversion_margin: float = 1.5
    muddy_spacing_threshold: float = 8.0
    muddy_improvement_ratio: float = 0.6
    leading_tone_optimization_probability: float = 0.7

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "EngineConfig":
        """Build a config from ``data`` ignoring unknown keys.

        Values are coerced to the type of the field's default so JSON numbers
        such as ``1`` work for float fields. ``inversion_bias`` keys arrive as
        strings from JSON and are converted back to integers.

        Raises
        ------
        ValueError
            If a known key carries a value that cannot be converted.
        """

        config = cls()
        if not data:
            return config
        known = {f.name for f in fields(cls)}
        for name, value in data.items():
            if name not in known:
                logging.warning("Ignoring unknown engine setting: %s", name)
                continue
            current = getattr(config, name)
            if name == "inversion_bias":
                try:
                    value = {int(k): float(v) for k, v in dict(value).items()}
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"Invalid value for inversion_bias: {value!r}") from exc
            else:
                try:
                    value = type(current)(value)
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"Invalid value for {name}: {value!r}") from exc
            setattr(config, name, value)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON serialisable copy of the configuration."""

        data = asdict(self)
        data["inversion_bias"] = {str(k): v for k, v in self.inversion_bias.items()}
        return data


def load_engine_config(settings: Optional[Mapping[str, Any]]) -> EngineConfig:
    """Return the :class:`EngineConfig` stored under ``settings["engine"]``.

    Invalid values are logged and the defaults are used instead so a broken
    settings file degrades to the stock behaviour.
    """

    section = (settings or {}).get("engine") or {}
    if not isinstance(section, Mapping):
        logging.warning("Ignoring engine settings: expected an object")
        return EngineConfig()
    try:
        return EngineConfig.from_dict(section)
    except ValueError as exc:
        logging.warning("Invalid engine settings, using defaults: %s", exc)
        return EngineConfig()
