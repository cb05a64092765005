import math

import pytest

from objectify_recs.catalog import Catalog, CatalogEntry

CATALOG_HEADER = "track_id,track_name,artists,danceability,energy,loudness,speechiness,acousticness,valence,region"


def make_entry(track_id, region="Europe", danceability=0.75, energy=0.72, loudness=-6.0,
               speechiness=0.05, acousticness=0.3, valence=0.55, name=None):
    return CatalogEntry(
        track_id=track_id,
        track_name=name or f"Song {track_id}",
        artists=f"Artist {track_id}",
        region=region,
        danceability=danceability,
        energy=energy,
        loudness=loudness,
        speechiness=speechiness,
        acousticness=acousticness,
        valence=valence,
    )


@pytest.fixture
def write_csv(tmp_path):
    def _write(text, name="catalog.csv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def sample_catalog():
    return Catalog([
        make_entry("eu1", region="Europe"),
        make_entry("as1", region="Asia"),
        make_entry("eu_far", region="Europe", danceability=0.2),
        make_entry("eu2", region="Europe", energy=0.68),
        make_entry("blank", region=""),
        make_entry("eu_nan", region="Europe", valence=math.nan),
    ])
