"""Element selector resolution.

Callers pass either a complete CSS selector or a short semantic id. Anything
that looks like CSS is passed through untouched; a bare identifier is turned
into an attribute match against the page's test-id attribute. Selectors are
never checked against the DOM here; an invalid one only surfaces when the
driver tries to locate it.
"""

TEST_ID_ATTRIBUTE = "data-testid"

# Any of these means the caller already wrote a CSS expression.
CSS_MARKERS = ("[", ".", "#", ">", " ", ":")


def resolve_selector(selector: str) -> str:
    """Resolve a caller-supplied selector into a locator expression.

    Args:
        selector: CSS selector or bare test id

    Returns:
        Locator expression

    Example:
        >>> resolve_selector("first-name")
        "[data-testid='first-name']"
        >>> resolve_selector("#first-name")
        '#first-name'
    """
    if not selector:
        return selector or ""

    if any(marker in selector for marker in CSS_MARKERS):
        return selector

    if "=" not in selector:
        return f"[{TEST_ID_ATTRIBUTE}='{selector}']"

    return selector
