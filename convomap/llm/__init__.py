from convomap.llm.llm_client import call_llm_json, extract_json_object, is_llm_configured

__all__ = ["call_llm_json", "extract_json_object", "is_llm_configured"]
