"""Input routing and focus coordination engine for the onevox terminal console."""
