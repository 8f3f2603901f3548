"""Provisioning for ComfyUI on rented GPU instances."""
