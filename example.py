"""Example usage of the apidiff comparison engine."""

import json

from apidiff import ApiDiffEngine, EngineConfig, apply_modifier, render_report, render_visual_diff

# Response from the legacy service
old_response = {
    "id": "INV-001",
    "total": 100.00,
    "status": "PAID",
    "ip": "",
    "discount": 0,
    "lineItems": [
        {"sku": "WIDGET-001", "quantity": 5},
        {"sku": "GADGET-002", "quantity": 2}
    ],
    "requestId": "a1b2c3"
}

# Response from the new service
new_response = {
    "id": "INV-001",
    "total": 100,
    "status": "paid",
    "ip": "0.0.0.0",
    "discount": 5,
    "lineItems": [
        {"sku": "WIDGET-001", "quantity": 5}
    ],
    "currency": "EUR",
    "requestId": "d4e5f6"
}

# Fill in the legacy service's empty ip before comparing
LEFT_MODIFIER = """
if response.get("ip") == "":
    response["ip"] = "0.0.0.0"
return response
"""

# Request ids always differ
NOISE = [{"op": "drop", "path": "$.requestId"}]


def main():
    print("=" * 60)
    print("apidiff - Example")
    print("=" * 60)

    left = apply_modifier(old_response, source=LEFT_MODIFIER, operations=NOISE, side="left").value
    right = apply_modifier(new_response, operations=NOISE, side="right").value

    result = ApiDiffEngine().compare(left, right)
    print(render_report(result))

    print("\n" + "-" * 60)
    print("Visual Difference:")
    print(render_visual_diff(left, right))

    print("\n" + "-" * 60)
    print("Full JSON Report:")
    print(json.dumps(result.to_dict(), indent=2))


def example_with_strict_presence():
    """0, "" and false compare as values instead of counting as absent."""
    print("\n" + "=" * 60)
    print("Example with Strict Presence")
    print("=" * 60)

    engine = ApiDiffEngine(EngineConfig(falsy_as_absent=False))
    result = engine.compare({"discount": 0}, {"discount": 5})

    for diff in result.differences:
        print(f"  - [{diff.kind.value}] {diff.dotted_path}: {diff.left!r} -> {diff.right!r}")


if __name__ == "__main__":
    main()
    example_with_strict_presence()
