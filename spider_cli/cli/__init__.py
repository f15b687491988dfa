"""
Command-line interface: Typer application and Rich output helpers.
"""
