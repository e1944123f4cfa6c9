"""Helpers."""


def normalize(url: str) -> str:
    return url.rstrip("/")
