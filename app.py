import plotly.graph_objects as go
from shiny import reactive, render
from shiny.express import input, ui
from shinywidgets import render_widget

# Import organized modules
from drugexplorer.config import (
    DEFAULT_LEVELS,
    DEFAULT_PAGE_SIZE,
    HIERARCHY_OPTIONS,
    PAGE_SIZE_OPTIONS,
)
from drugexplorer.data_manager import load_view
from drugexplorer.filtering import (
    clamp_page,
    describe_selection,
    filter_view,
    page_count,
    page_view,
)
from drugexplorer.hierarchy import selection_from_node_id, summarize_levels
from drugexplorer.plotting import create_hierarchy_plot

# Helpers for UI mapping
LEVEL_CHOICES = {value: label for label, value in HIERARCHY_OPTIONS}

# Levels opened at once in the treemap; deeper levels appear on click
TREEMAP_DEPTH = 3

# ======================================================
#  REACTIVE STATE
# ======================================================
# Load once on startup; values stay in-memory until reload or app restart.
view_store = reactive.Value(load_view())

# Current hierarchy selection; replaced wholesale on every node click.
selection = reactive.Value({})


@reactive.calc
def hierarchy_levels():
    levels = list(input.levels() or ())
    return levels or list(DEFAULT_LEVELS)


@reactive.calc
def filtered_data():
    return filter_view(view_store.get(), selection.get())


@reactive.calc
def page_size():
    return int(input.page_size() or DEFAULT_PAGE_SIZE)


@reactive.calc
def current_page():
    df = filtered_data()
    return clamp_page(df, input.page(), page_size()), page_count(df, page_size())


@reactive.effect
@reactive.event(input.levels)
def _reset_selection_on_levels():
    # A new level order builds a new tree; old paths no longer apply.
    selection.set({})


@reactive.effect
@reactive.event(selection, input.page_size)
def _reset_page():
    ui.update_numeric("page", value=1)


# ======================================================
#  UI LAYOUT
# ======================================================
ui.tags.head(
    ui.tags.link(
        rel="stylesheet",
        href="https://cdnjs.cloudflare.com/ajax/libs/font-awesome/6.4.0/css/all.min.css",
    )
)

ui.page_opts(
    title="Drug registry explorer",
    fillable=False,
    fillable_mobile=True,
    full_width=True,
    id="page_main",
    lang="en",
)

with ui.sidebar(open="always", position="right"):
    ui.input_selectize(
        "levels",
        "Hierarchy levels (outermost first)",
        LEVEL_CHOICES,
        selected=DEFAULT_LEVELS,
        multiple=True,
    )
    ui.input_select(
        "page_size",
        "Rows per page",
        PAGE_SIZE_OPTIONS,
        selected=str(DEFAULT_PAGE_SIZE),
    )
    ui.input_numeric("page", "Page", value=1, min=1, step=1)

    ui.input_action_button(
        "reset_filters",
        "Reset filters",
        icon=ui.tags.i(class_="fas fa-rotate-left"),
        class_="btn-primary mt-3",
    )
    ui.input_action_button(
        "reload_data",
        "Reload data",
        icon=ui.tags.i(class_="fas fa-arrows-rotate"),
        class_="mt-2",
    )


@reactive.effect
@reactive.event(input.reset_filters)
def _reset_filters():
    selection.set({})
    ui.update_selectize("levels", selected=DEFAULT_LEVELS)
    ui.update_select("page_size", selected=str(DEFAULT_PAGE_SIZE))
    ui.update_numeric("page", value=1)


@reactive.effect
@reactive.event(input.reload_data)
def _reload_data():
    view_store.set(load_view(force_reload=True))
    selection.set({})


with ui.card(full_screen=True):
    ui.card_header("Drug hierarchy")

    @render_widget
    def hierarchy_plot():
        levels = hierarchy_levels()
        nodes = summarize_levels(view_store.get(), levels)
        fig = go.FigureWidget(create_hierarchy_plot(nodes, max_depth=TREEMAP_DEPTH))

        def _on_node_click(trace, points, state):
            if not points.point_inds:
                return
            node = trace.ids[points.point_inds[0]]
            selection.set(selection_from_node_id(node, levels))

        fig.data[0].on_click(_on_node_click)
        return fig


with ui.card():
    ui.card_header("Drugs")

    @render.text
    def selection_summary():
        page, pages = current_page()
        df = filtered_data()
        return (
            f"Filter: {describe_selection(selection.get())} | "
            f"{len(df):,} of {len(view_store.get()):,} rows | Page {page} of {pages}"
        )

    @render.data_frame
    def drug_table():
        page, _pages = current_page()
        table = page_view(filtered_data(), page, page_size())
        # Nullable pandas dtypes render as blanks in the grid
        table = table.astype(object).where(table.notna(), None)
        return render.DataGrid(table, width="100%", selection_mode="none")
