"""Pure planning steps: timing, canvas, filter graph and stage instructions."""
