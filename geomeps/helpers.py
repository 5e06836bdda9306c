from typing import Any, Dict, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeRemainingColumn
from rich.table import Table
from rich.tree import Tree

# Initialize rich console
console = Console()

def display_header(title: str, subtitle: Optional[str] = None) -> None:
    """Display a formatted header with optional subtitle."""
    console.print(Panel(f"[bold blue]{title}[/]", subtitle=subtitle, expand=False))

def display_status(status: str, status_type: str = "info") -> None:
    """
    Display a status message with appropriate styling.

    Args:
        status: The status message to display
        status_type: One of "info", "success", "warning", "error"
    """
    style_map = {
        "info": "blue",
        "success": "green",
        "warning": "yellow",
        "error": "red",
    }
    style = style_map.get(status_type, "white")
    console.print(f"[{style}]● {status}[/]")

def create_rich_progress() -> Progress:
    """Create and return a rich progress bar for tracking processes."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=None),
        "[progress.percentage]{task.percentage:>3.0f}%",
        TimeRemainingColumn(),
    )

def display_parameters(params: Dict[str, Any], title: str = "Parameters") -> None:
    """
    Display a dictionary of parameters in a clean, formatted table.

    Args:
        params: Dictionary of parameter names and values
        title: Title for the parameters table
    """
    table = Table(title=title)
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="green")

    for key, value in params.items():
        table.add_row(str(key), str(value))

    console.print(table)

def display_geometry(rows: Sequence[Sequence[Any]], title: str = "Geometry") -> None:
    """
    Display one row per geometric object.

    Args:
        rows: (index, shape, material, epsilon) tuples
        title: Title for the table
    """
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Shape", style="white")
    table.add_column("Material", style="green")
    table.add_column("Epsilon", style="magenta", justify="right")
    for row in rows:
        table.add_row(*[str(item) for item in row])
    console.print(table)

def tree_view(data: Dict[str, Any], title: str = "Structure") -> None:
    """
    Display nested data in a tree view.

    Args:
        data: Nested dictionary to display as a tree
        title: Title for the tree
    """
    tree = Tree(f"[bold]{title}[/]")

    def _add_to_tree(tree_node, data_node):
        if isinstance(data_node, dict):
            for key, value in data_node.items():
                if isinstance(value, (dict, list)):
                    branch = tree_node.add(f"[blue]{key}[/]")
                    _add_to_tree(branch, value)
                else:
                    tree_node.add(f"[blue]{key}:[/] {value}")
        elif isinstance(data_node, list):
            for i, item in enumerate(data_node):
                if isinstance(item, (dict, list)):
                    branch = tree_node.add(f"[green]{i}[/]")
                    _add_to_tree(branch, item)
                else:
                    tree_node.add(f"[green]{i}:[/] {item}")

    _add_to_tree(tree, data)
    console.print(tree)
