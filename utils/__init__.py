from utils.get_endpoint import get_base_url, get_endpoint
from utils.response_utils import extract_error_entries, parse_json_body

__all__ = ["get_base_url", "get_endpoint", "extract_error_entries", "parse_json_body"]
