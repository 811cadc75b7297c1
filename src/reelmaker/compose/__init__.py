"""Create-video request handling: validation, orchestration and HTTP routes."""
