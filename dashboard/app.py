"""
Venue Directory Dashboard (Streamlit)

- Loads the venue caches for a data directory (same loaders as the API)
- Shows headline KPIs: venues, countries, new this month, growth
- Plots the 12-month growth series and top countries / categories
- Renders a pydeck map of venue clusters at a chosen zoom, sized by count
- Tails the latest geo-enrichment / cache-rebuild run logs

Run:
    streamlit run dashboard/app.py
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import pydeck as pdk
import streamlit as st

from common.config import load_config
from common.utils import iso_now_ms
from directory import stats as venue_stats
from geocache.registry import GeoCaches


# -------------------------
# Config
# -------------------------
MAX_CLUSTERS = 5000  # how many clusters to draw on the map
LOG_TAIL_LINES = 40


# -------------------------
# Helpers
# -------------------------
@st.cache_resource
def load_caches(data_dir: str) -> GeoCaches:
    cfg = load_config()
    cfg["data"]["dir"] = data_dir
    return GeoCaches(cfg)


def latest_run_log(logs_dir: Path, kind: str) -> Optional[Path]:
    """Newest logs/YYYY/MM/<kind>_DD.log, by path order."""
    if not logs_dir.exists():
        return None
    found = sorted(logs_dir.glob(f"*/*/{kind}_*.log"))
    return found[-1] if found else None


def tail(path: Path, n: int) -> str:
    lines = path.read_text(encoding="utf-8", errors="ignore").splitlines()
    return "\n".join(lines[-n:])


def clusters_frame(tiles: Dict[str, List[Dict[str, Any]]]) -> pd.DataFrame:
    rows = []
    for key, entries in tiles.items():
        for e in entries:
            rows.append({
                "tile": key,
                "country": e["country"],
                "lat": e["latitude"],
                "lon": e["longitude"],
                "count": e["count"],
            })
    df = pd.DataFrame(rows, columns=["tile", "country", "lat", "lon", "count"])
    return df.sort_values("count", ascending=False).head(MAX_CLUSTERS)


def count_to_radius(count: np.ndarray, zoom: int) -> np.ndarray:
    """Area-proportional marker radius in metres, shrinking with zoom."""
    base = 40000.0 / (2 ** max(0, zoom - 1))
    return base * np.sqrt(np.maximum(count, 1))


# -------------------------
# UI
# -------------------------
st.set_page_config(page_title="Venue Directory Dashboard", layout="wide")
st.title("Venue Directory: Caches & Stats")

with st.sidebar:
    st.subheader("Data Source")
    data_dir = st.text_input("Data directory", str(load_config()["data"]["dir"]))
    zoom = st.slider("Map zoom", min_value=1, max_value=16, value=3)
    if st.button("Rebuild caches"):
        load_caches(data_dir).rebuild(initiated_by="dashboard")
    st.caption("Rebuild re-reads the venue file and every index derived from it.")

caches = load_caches(data_dir)
if not caches.path("venues_file").exists():
    st.warning(
        f"No venue file at `{caches.path('venues_file')}`. Run `scripts/enrich_geo_data.py` "
        "to build it from the fallback source."
    )
    st.stop()

venues = caches.venues.venues
summary = venue_stats.summary(venues)
detail = venue_stats.detailed(venues)

# KPI row
k1, k2, k3, k4, k5 = st.columns(5)
k1.metric("Venues", f"{summary['totalVenues']:,}")
k2.metric("Countries", f"{summary['countries']}")
k3.metric("Categories", f"{detail['totalCategories']}")
k4.metric("New this month", f"{summary['newThisMonth']}")
k5.metric("Growth vs last month", f"{summary['growthPercent']}%")

# Charts
left, right = st.columns(2)
with left:
    st.subheader("Venues added (12 months)")
    growth = pd.DataFrame(detail["monthlyGrowth"]).set_index("month")
    st.bar_chart(growth["count"], height=220)
    st.line_chart(growth["cumulative"], height=160)

with right:
    st.subheader("Top countries & categories")
    c1, c2 = st.columns(2)
    countries = pd.DataFrame(detail["topCountries"])
    if not countries.empty:
        countries["name"] = countries["name"].map(caches.countries.get_country_name)
    c1.dataframe(countries, use_container_width=True, height=300)
    c2.dataframe(pd.DataFrame(detail["topCategories"]), use_container_width=True, height=300)

# Map
st.subheader(f"Venue clusters (zoom {zoom})")
payload = caches.tiles().query(zoom)
df = clusters_frame(payload["tiles"])

if not df.empty:
    df["radius"] = count_to_radius(df["count"].to_numpy(dtype=float), zoom)
    center_lat = float(np.average(df["lat"], weights=df["count"]))
    center_lon = float(np.average(df["lon"], weights=df["count"]))

    layer = pdk.Layer(
        "ScatterplotLayer",
        data=df,
        get_position=["lon", "lat"],
        get_radius="radius",
        get_fill_color=[247, 147, 26, 170],
        get_line_color=[90, 50, 0, 200],
        line_width_min_pixels=1,
        pickable=True,
    )
    st.pydeck_chart(
        pdk.Deck(
            map_style=None,
            initial_view_state=pdk.ViewState(latitude=center_lat, longitude=center_lon, zoom=max(0, zoom - 1)),
            layers=[layer],
            tooltip={"text": "{country} {tile}\nVenues: {count}"},
        )
    )
    st.caption(
        f"{len(df)} clusters · top subcategories: "
        + ", ".join(f"{k} ({v})" for k, v in sorted(payload["relevantSubcategories"].items(),
                                                     key=lambda kv: -kv[1])[:5])
    )
else:
    st.info("No venues with coordinates and a country to render on the map.")

# Run logs
st.subheader("Latest job logs")
log_cols = st.columns(2)
for col, kind in zip(log_cols, ("geo_enrich", "cache_rebuild")):
    path = latest_run_log(caches.logs_dir, kind)
    with col:
        st.markdown(f"**{kind}**")
        if path is None:
            st.caption("no runs logged yet")
        else:
            st.code(tail(path, LOG_TAIL_LINES), language="text")
            st.caption(str(path))

st.caption(
    f"Source: {caches.path('venues_file')} · Replication state: {caches.updated_at() or 'n/a'} · "
    f"Last refresh: {iso_now_ms()}"
)
