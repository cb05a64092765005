"""
Objectify Recs - Songs for a Photo
==================================

Sends a photo to a multimodal generative model for a description, turns the
description into Spotify-style audio feature targets and picks up to five
catalog songs that sit within tolerance of those targets.

Modules:
    - config: Configuration and constants
    - catalog: Song catalog loading
    - imaging: Image encoding for the descriptor service
    - prompts: Instruction templates
    - gemini_client: Gemini API wrapper
    - features: Descriptor parsing into feature targets
    - matcher: Tolerance-band catalog filter
    - recommender: Main recommendation orchestrator
    - cli: Command-line interface
    - app: Streamlit web app
"""

__version__ = "1.0.0"
__author__ = "Objectify Team"
