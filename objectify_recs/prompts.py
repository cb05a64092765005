"""
Instruction templates sent alongside the image.

The positional parser depends on the line layout these ask for: the last
seven lines of the answer are the six audio features followed by the region.
"""

from .config import FEATURE_RANGES, REGIONS

_IDENTIFY = "Analyze the given image and identify the closest object within the scene. "

_DESCRIBE_OBJECT = (
    "Name the object category;\n"
    "Potential material(s);\n"
    "Religious/belief significance if it has any, if none then answer None;\n"
    "Main colour;\n"
    "Three main moods it gives (each on a new line);\n"
    "Historical or symbolic context (e.g., ancient, modern, ceremonial, etc.);\n"
    "Associated sound or auditory quality (e.g., chime, drum, silence, etc.).\n"
)


def _feature_lines() -> str:
    lines = [
        f"Danceability between {FEATURE_RANGES['danceability'][0]} and {FEATURE_RANGES['danceability'][1]};",
        f"Energy between {FEATURE_RANGES['energy'][0]} and {FEATURE_RANGES['energy'][1]};",
        f"Loudness between {FEATURE_RANGES['loudness'][0]:g} and {FEATURE_RANGES['loudness'][1]:g} "
        "(lower values are quieter);",
        f"Speechiness between {FEATURE_RANGES['speechiness'][0]} and {FEATURE_RANGES['speechiness'][1]};",
        f"Acousticness between {FEATURE_RANGES['acousticness'][0]:g} and {FEATURE_RANGES['acousticness'][1]};",
        f"Valence between {FEATURE_RANGES['valence'][0]} and {FEATURE_RANGES['valence'][1]};",
    ]
    return "\n".join(lines) + "\n"


DESCRIPTOR_PROMPT = (
    _IDENTIFY
    + "For each characteristic answer in one word on a new line to later use as features. "
    "Do not include feature names in the answer, just the values you produce.\n"
    + _DESCRIBE_OBJECT
    + "Based on the characteristics you produced, map them to these Spotify song feature values:\n"
    + _feature_lines()
    + f"Region ({', '.join(REGIONS)}).\n"
    + "Put one value per line, in exactly this order. "
    "Don't leave any blank lines and don't include names for the song features, only values."
)

STRUCTURED_PROMPT = (
    _IDENTIFY
    + "Describe each characteristic in one word.\n"
    + _DESCRIBE_OBJECT
    + "Based on the characteristics you produced, map them to these Spotify song feature values:\n"
    + _feature_lines()
    + f"Region (one of {', '.join(REGIONS)}).\n"
    + "Answer with a single JSON object using the keys description, danceability, energy, "
    "loudness, speechiness, acousticness, valence and region."
)

# Schema for the service's constrained JSON output
STRUCTURED_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "description": {"type": "STRING"},
        "danceability": {"type": "NUMBER"},
        "energy": {"type": "NUMBER"},
        "loudness": {"type": "NUMBER"},
        "speechiness": {"type": "NUMBER"},
        "acousticness": {"type": "NUMBER"},
        "valence": {"type": "NUMBER"},
        "region": {"type": "STRING", "enum": list(REGIONS)},
    },
    "required": [
        "danceability",
        "energy",
        "loudness",
        "speechiness",
        "acousticness",
        "valence",
        "region",
    ],
}
