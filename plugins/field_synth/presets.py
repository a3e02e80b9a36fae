"""
Field Synthesis Presets

Each preset configures the tree grammar (complexity budget, active
combinators, band thresholds) and the transition schedule (stage
duration, easing switch point, seed array length).
"""

PRESETS = {
    "classic": {
        "name": "Classic",
        "description": "Static and quadratic mixes, 10s cross-fades",
        "complexity": 20,
        "combinators": ["mixN", "mixQuad"],
        "stage_duration": 10.0, "easing_switch": 0.5,
    },
    "full": {
        "name": "Full Grammar",
        "description": "All four combinators active",
        "complexity": 24,
        "combinators": ["mixN", "mixQuad", "mixPower", "mix1"],
        "stage_duration": 10.0, "easing_switch": 0.5,
    },
    "calm": {
        "name": "Calm",
        "description": "Few large shapes drifting slowly",
        "complexity": 8,
        "combinators": ["mixQuad"],
        "transform_band": 0.5,
        "stage_duration": 20.0, "easing_switch": 1.0,
    },
    "dense": {
        "name": "Dense",
        "description": "Deep warped trees, quick turnover",
        "complexity": 48,
        "combinators": ["mixN", "mixQuad", "mixPower"],
        "structural_band": 0.5,
        "stage_duration": 6.0, "easing_switch": 0.5,
    },
    "seeded": {
        "name": "Seeded",
        "description": "Adds a 64-value seed array interpolated per frame",
        "complexity": 20,
        "combinators": ["mixN", "mixQuad"],
        "stage_duration": 10.0, "easing_switch": 1.0,
        "seed_count": 64,
    },
}

PRESET_ORDER = ["classic", "full", "calm", "dense", "seeded"]


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def list_presets():
    """Return list of (key, name, description) for presets."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"])
            for k in PRESET_ORDER if k in PRESETS]
