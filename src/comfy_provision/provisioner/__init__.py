"""Model downloads, ComfyUI bootstrap and run configuration."""
