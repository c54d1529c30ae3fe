"""Plotly chart builders for the reactor production chapter."""

import plotly.express as px
import plotly.graph_objects as go
import pandas as pd
from typing import Dict, List, Optional

from config.defaults import CANVAS_WIDTH, ROW_HEIGHT
from engine.spatial import DragState, canvas_height, zone_band
from models.log import ReactorLogView, ReactorStatus
from models.reactor import Reactor
from models.zone import Zone

STATUS_COLORS = {
    ReactorStatus.RUNNING: "#10B981",
    ReactorStatus.MAINTENANCE: "#F43F5E",
    ReactorStatus.IDLE: "#94A3B8",
}


def reactor_layout_map(
    reactors: List[Reactor],
    zones: List[Zone],
    views: Dict[str, ReactorLogView],
    ghost: Optional[DragState] = None,
) -> go.Figure:
    """Zone lanes with reactors drawn at their snapped positions."""
    height = canvas_height(zones)
    fig = go.Figure()

    for i, zone in enumerate(zones):
        top, bottom = zone_band(zone)
        fig.add_shape(
            type="rect", x0=0, x1=CANVAS_WIDTH, y0=top, y1=bottom,
            fillcolor="#F8FAFC" if i % 2 == 0 else "#FFFFFF",
            line=dict(color="#CBD5E1", width=1), layer="below",
        )
        fig.add_annotation(
            x=10, y=top + ROW_HEIGHT / 2, text=f"<b>{zone.name}</b>",
            showarrow=False, xanchor="left", font=dict(color="#64748B", size=12),
        )

    if reactors:
        rows = []
        for r in reactors:
            view = views.get(r.reactor_id)
            status = view.status if view else ReactorStatus.IDLE
            util = view.utilization_pct if view else 0.0
            rows.append({
                "x": r.x, "y": r.y, "size": r.node_size / 2,
                "color": STATUS_COLORS[status],
                "label": f"{r.name}<br>{util:.1f}%",
                "hover": (f"{r.name} ({r.capacity}L)<br>{status.value}<br>"
                          f"Util {util:.1f}%<br>{view.display_product if view else ''}"),
            })
        df = pd.DataFrame(rows)
        fig.add_trace(go.Scatter(
            x=df["x"], y=df["y"], mode="markers+text",
            marker=dict(size=df["size"], color=df["color"], line=dict(color="#1E293B", width=2)),
            text=df["label"], textposition="bottom center",
            hovertext=df["hover"], hoverinfo="text", showlegend=False,
        ))

    if ghost is not None:
        fig.add_trace(go.Scatter(
            x=[ghost.ghost_x], y=[ghost.ghost_y], mode="markers+text",
            marker=dict(size=30, color="rgba(99,102,241,0.4)",
                        line=dict(color="#6366F1", width=2, dash="dash")),
            text=[f"{ghost.capacity}L"], textposition="middle center",
            hoverinfo="skip", showlegend=False,
        ))

    fig.update_xaxes(range=[0, CANVAS_WIDTH], showgrid=True, dtick=40, zeroline=False)
    fig.update_yaxes(range=[height, 0], showgrid=False, zeroline=False)
    fig.update_layout(height=max(400, height * 0.8), margin=dict(l=10, r=10, t=10, b=10),
                      plot_bgcolor="#F1F5F9")
    return fig


def utilization_bar(views: List[ReactorLogView], reactors: List[Reactor]) -> go.Figure:
    """Horizontal bar of utilization per reactor."""
    names = {r.reactor_id: r.name for r in reactors}
    df = pd.DataFrame([{
        "Reactor": names.get(v.reactor_id, v.reactor_id),
        "Utilization %": round(v.utilization_pct, 1),
        "Status": v.status.value,
    } for v in views], columns=["Reactor", "Utilization %", "Status"])
    fig = px.bar(
        df, x="Utilization %", y="Reactor", orientation="h", color="Status",
        color_discrete_map={s.value: c for s, c in STATUS_COLORS.items()},
        title="Standard Utilization by Reactor",
    )
    fig.update_layout(height=max(300, len(df) * 28), yaxis_type="category")
    fig.update_xaxes(range=[0, 100])
    return fig


def category_revenue_donut(category_rows: List[dict], title: str = "Revenue by Category") -> go.Figure:
    """Donut of revenue share per category."""
    fig = go.Figure(data=[go.Pie(
        labels=[r["label"] for r in category_rows],
        values=[r["revenue"] for r in category_rows],
        hole=0.6,
        textinfo="percent+label",
    )])
    total = sum(r["revenue"] for r in category_rows)
    fig.update_layout(
        title=title,
        height=350,
        annotations=[dict(text=f"{total:,.3f} B", x=0.5, y=0.5, font_size=16, showarrow=False)],
    )
    return fig
