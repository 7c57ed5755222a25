from .model_client import ModelClient, parse_json_response

__all__ = [
    "ModelClient",
    "parse_json_response",
]
