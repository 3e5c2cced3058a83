import pandas as pd
import plotly.graph_objects as go


# ============================================================
# Configuration / constants
# ============================================================

HOVER_TEMPLATE_NODE = (
    "<b>%{label}</b><br>"
    "Drugs: %{value:,}<br>"
    "Share of parent: %{percentParent:.1%}<extra></extra>"
)

ROOT_COLOR = "#f5f7fb"


# ============================================================
# Main plotting function
# ============================================================


def create_hierarchy_plot(
    nodes: pd.DataFrame,
    *,
    title: str | None = None,
    max_depth: int | None = None,
) -> go.Figure:
    """
    Generate a treemap of the drug hierarchy.

    Parameters
    ----------
    nodes : pd.DataFrame
        Output of :func:`drugexplorer.hierarchy.summarize_levels` with
        columns 'id', 'parent', 'label' and 'count'.
    title : str | None, default None
        Optional figure title.
    max_depth : int | None, default None
        Number of levels shown at once; deeper levels open on click.

    Returns
    -------
    go.Figure
        A Plotly Figure with a single Treemap trace whose ``ids`` are the
        node ids, so a clicked point maps straight back to its path.
    """
    fig = go.Figure(
        go.Treemap(
            ids=nodes["id"].tolist(),
            labels=nodes["label"].tolist(),
            parents=nodes["parent"].tolist(),
            values=nodes["count"].tolist(),
            branchvalues="total",
            maxdepth=max_depth,
            hovertemplate=HOVER_TEMPLATE_NODE,
            root=dict(color=ROOT_COLOR),
            textinfo="label+value",
        )
    )

    fig.update_layout(
        margin=dict(t=50 if title else 10, l=10, r=10, b=10),
        height=550,
    )
    if title:
        fig.update_layout(title=dict(text=title, x=0.5))
    return fig
