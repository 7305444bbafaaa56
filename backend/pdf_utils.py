import base64


def bytes_to_base64_data_uri(content: bytes, content_type: str) -> str:
    """
    Encode des octets en URI data base64 pour les intégrer dans un PDF WeasyPrint.

    Returns:
        str: URI data complète (data:image/jpeg;base64,...)
    """
    base64_encoded = base64.b64encode(content).decode("utf-8")
    return f"data:{content_type};base64,{base64_encoded}"
