"""Pydantic request/response models and status enums."""
