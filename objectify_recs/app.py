"""
Objectify Recs - Streamlit Web App
==================================

Take or pick a photo, get songs that match its vibe.

Run with:
    streamlit run objectify_recs/app.py
"""

import html
import os
import sys

import streamlit as st

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from objectify_recs.catalog import load_catalog
from objectify_recs.config import CATALOG_PATH, DEFAULT_TOLERANCE, MatchConfig
from objectify_recs.imaging import ImageLoadError, encode_image
from objectify_recs.recommender import AnalysisSession, RecommendationEngine, RecommendationOutput
from objectify_recs.utils import track_card_html


# =============================================================================
# PAGE CONFIG
# =============================================================================
st.set_page_config(
    page_title="Objectify Recs",
    page_icon="🎵",
    layout="centered",
)

# =============================================================================
# CUSTOM CSS
# =============================================================================
st.markdown("""
<style>
    .main-header {
        font-size: 2.6rem;
        font-weight: bold;
        background: linear-gradient(90deg, #1DB954, #1ed760);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
        text-align: center;
        margin-bottom: 0.5rem;
    }
    .sub-header {
        text-align: center;
        color: #888;
        margin-bottom: 2rem;
    }
    .response-box {
        background: #f0f0f0;
        border-radius: 10px;
        padding: 1rem 1.2rem;
        color: #333;
        white-space: pre-wrap;
    }
    .track-card {
        padding: 0.6rem 0;
        border-bottom: 1px solid #ccc;
    }
    .track-name a {
        font-size: 1rem;
        font-weight: 600;
        color: inherit;
    }
    .artist-name {
        font-size: 0.9rem;
        color: #666;
    }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def check_credentials() -> bool:
    """Check if the Gemini key is configured."""
    return bool(os.environ.get("GEMINI_API_KEY", "") or st.session_state.get("gemini_api_key", ""))


def set_credentials(api_key: str):
    """Set the Gemini key in the environment."""
    os.environ["GEMINI_API_KEY"] = api_key
    st.session_state["gemini_api_key"] = api_key


@st.cache_resource
def get_catalog(source: str):
    """Load the catalog once per session (cached)."""
    return load_catalog(source)


def get_session() -> AnalysisSession:
    if "analysis_session" not in st.session_state:
        st.session_state["analysis_session"] = AnalysisSession()
    return st.session_state["analysis_session"]


def render_track(rec, index: int):
    """Render a single matched song with its Spotify link."""
    st.markdown(track_card_html(index, rec.url, rec.track_name, rec.artists), unsafe_allow_html=True)


def render_output(output: RecommendationOutput):
    """Render the description and the matched songs."""
    if output.failed:
        st.error(output.response_text)
    else:
        st.markdown(f'<div class="response-box">{html.escape(output.response_text)}</div>', unsafe_allow_html=True)

    if output.recommendations:
        st.subheader("🎶 Songs for this photo")
        for i, rec in enumerate(output.recommendations, 1):
            render_track(rec, i)

        st.download_button(
            label="📄 Download JSON",
            data=output.to_json(),
            file_name=f"objectify_recs_{output.request_id}.json",
            mime="application/json"
        )
    elif not output.failed:
        st.info("No songs in the catalog match this photo.")


# =============================================================================
# MAIN APP
# =============================================================================

def main():
    """Main Streamlit app."""

    # Header
    st.markdown('<h1 class="main-header">🎵 Objectify Recs</h1>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Songs that sound like your photo</p>', unsafe_allow_html=True)

    # Sidebar for settings
    with st.sidebar:
        st.header("⚙️ Settings")

        with st.expander("🔑 Gemini API Key", expanded=not check_credentials()):
            api_key = st.text_input(
                "API Key",
                value=st.session_state.get("gemini_api_key", ""),
                type="password"
            )
            if st.button("Save Key"):
                if api_key:
                    set_credentials(api_key)
                    st.success("Key saved!")
                else:
                    st.error("Please enter an API key")

        catalog_source = st.text_input("Catalog CSV", value=CATALOG_PATH)

        tolerance = st.slider(
            "Tolerance",
            min_value=0.05,
            max_value=0.30,
            value=DEFAULT_TOLERANCE,
            step=0.01
        )
        match_region = st.checkbox("Match region", value=True)

    if not check_credentials():
        st.warning("⚠️ Please enter your Gemini API key in the sidebar to get started.")
        return

    catalog = get_catalog(catalog_source)
    if not len(catalog):
        st.warning("The song catalog is empty or couldn't be loaded; no songs will match.")

    # Image input
    tab_camera, tab_gallery = st.tabs(["📷 Take Photo", "🖼️ Pick from Gallery"])
    with tab_camera:
        photo = st.camera_input("Take a photo")
    with tab_gallery:
        picked = st.file_uploader("Pick an image", type=["jpg", "jpeg", "png", "webp"])

    image_file = photo or picked
    session = get_session()

    if image_file is not None:
        raw = image_file.getvalue()
        st.image(raw, width=200)

        # Streamlit reruns on every interaction; analyze each image only once
        image_key = (image_file.name, len(raw))
        if st.session_state.get("last_image_key") != image_key:
            st.session_state["last_image_key"] = image_key
            try:
                encoded = encode_image(raw)
            except ImageLoadError as e:
                st.error(str(e))
                return

            engine = RecommendationEngine(
                catalog=catalog,
                match_config=MatchConfig.uniform(tolerance, match_region=match_region),
            )
            with st.spinner("Analyzing image..."):
                engine.analyze_in_session(session, encoded.data, encoded.mime_type)

    if session.current is not None:
        render_output(session.current)


if __name__ == "__main__":
    main()
