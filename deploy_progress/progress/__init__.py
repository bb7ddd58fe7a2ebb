"""Live progress components for stack, stack-set and service deployments.

Components are composed into a tree whose root is handed to ``render``:

    streamer = StackStreamer("my-env")
    renderer = listening_stack_renderer(streamer, "my-env", "Update env", descriptions)
    await render(TabbedFileWriter(sys.stderr), renderer)
"""

from deploy_progress.progress.cloudformation import (
    ECSServiceResourceComponent,
    ResourceComponent,
    ResourceRendererOpts,
    StackComponent,
    StackSetComponent,
    listening_change_set_renderer,
    listening_ecs_service_resource_renderer,
    listening_resource_renderer,
    listening_stack_renderer,
    listening_stack_set_renderer,
)
from deploy_progress.progress.components import (
    NESTED_COMPONENT_PADDING,
    DynamicRenderer,
    DynamicTreeComponent,
    NoopComponent,
    Renderer,
    RenderError,
    RenderOptions,
    SingleLineComponent,
    SuffixWriter,
    TableComponent,
    TreeComponent,
    nested_render_options,
)
from deploy_progress.progress.composite import (
    EnvControllerComponent,
    MultiRenderer,
    listening_env_controller_renderer,
    multi_renderer,
)
from deploy_progress.progress.ecs import (
    RollingUpdateComponent,
    listening_rolling_update_renderer,
)
from deploy_progress.progress.render import erase_and_render, render
from deploy_progress.progress.stopwatch import StopWatch
from deploy_progress.progress.summarybar import (
    Datum,
    SummaryBar,
    SummaryBarComponent,
    SummaryBarError,
)

__all__ = [
    "NESTED_COMPONENT_PADDING",
    "Datum",
    "DynamicRenderer",
    "DynamicTreeComponent",
    "ECSServiceResourceComponent",
    "EnvControllerComponent",
    "MultiRenderer",
    "NoopComponent",
    "RenderError",
    "RenderOptions",
    "Renderer",
    "ResourceComponent",
    "ResourceRendererOpts",
    "RollingUpdateComponent",
    "SingleLineComponent",
    "StackComponent",
    "StackSetComponent",
    "StopWatch",
    "SuffixWriter",
    "SummaryBar",
    "SummaryBarComponent",
    "SummaryBarError",
    "TableComponent",
    "TreeComponent",
    "erase_and_render",
    "listening_change_set_renderer",
    "listening_ecs_service_resource_renderer",
    "listening_env_controller_renderer",
    "listening_resource_renderer",
    "listening_rolling_update_renderer",
    "listening_stack_renderer",
    "listening_stack_set_renderer",
    "multi_renderer",
    "nested_render_options",
    "render",
]
