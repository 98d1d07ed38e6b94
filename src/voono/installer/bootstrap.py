"""Runs the selected installers in their fixed order."""

from .. import console
from .context import InstallContext, Selection
from .node import install_node
from .proxy import install_proxy
from .tunnel import install_tunnel


def run_selected(ctx: InstallContext, selection: Selection) -> None:
    """Report the selection, then run node, tunnel and proxy, in that order.

    The order never depends on how the flags were given. A fatal error in one
    installer stops the ones after it. An empty selection only reaches here
    from library callers; the CLI turns "no flags" into every installer.
    """
    console.log("Selected actions:")
    for label in selection.labels():
        console.item(label)

    if not selection:
        console.warn("Nothing selected. Exiting.")
        return

    steps = [
        (selection.node, install_node),
        (selection.tunnel, install_tunnel),
        (selection.proxy, install_proxy),
    ]
    for selected, install in steps:
        if selected:
            install(ctx)

    console.log("All done. ✨")
