from __future__ import annotations

from typing import Any


def _bar(value: float, width: int = 20) -> str:
    filled = int(round(max(0.0, min(100.0, value)) / 100 * width))
    return "#" * filled + "." * (width - filled)


def format_text_report(response: dict[str, Any]) -> str:
    """Format a projected response for console output."""
    lines: list[str] = []
    tank = response["tank"]

    lines.append("=" * 30 + f" Aquarium: {tank['name']} " + "=" * 30)
    lines.append(f"Coins: {response['coins']:,}  (lifetime {response['lifetime_coins']:,})")
    lines.append(f"Cleanliness: [{_bar(tank['cleanliness'])}] {tank['cleanliness']:.1f}")
    space = f"Space: {tank['used_space']:g}/{tank['capacity']:g}"
    if tank["over_capacity"]:
        space += "  (over capacity)"
    lines.append(space)
    lines.append(f"Dirt rate: {tank['dirty_rate']:.3f}/h")
    lines.append("")

    sim = response.get("sim_result")
    if sim and sim["hours_by_tank"]:
        lines.append("SINCE LAST VISIT:")
        for tank_id, hours in sim["hours_by_tank"].items():
            lines.append(f"  {tank_id:.<20s} {hours:.2f}h")
        lines.append(f"  Earned: {sim['coins_earned']:,} coins")
        if sim["weak_transitions"]:
            lines.append(f"  Weakened: {len(sim['weak_transitions'])} fish")
        if sim["spawned"]:
            lines.append(f"  New plants: {len(sim['spawned'])}")
        lines.append("")

    lines.append("FISH:")
    if not tank["fish"]:
        lines.append("  (none)")
    for f in tank["fish"]:
        if f["legacy"]:
            lines.append(f"  {f['id']} {f['name']} (retired species)")
            continue
        marker = "  !" if f["weak"] else "  *"
        lines.append(
            f"{marker} {f['name']:<18s} L{f['level']:<2d} "
            f"hunger {f['hunger']:5.1f}  health {f['health']:5.1f}  "
            f"happy {f['happiness']:3d}  {f['coin_rate']:.2f}/h  [{f['id']}]"
        )
        for factor in f["breakdown"]:
            if factor["value"]:
                lines.append(f"      {factor['label']}: {factor['value']:+.1f}")
    lines.append("")

    if tank["decor"]:
        lines.append("DECOR:")
        for d in tank["decor"]:
            size = f" size {d['size']:.2f}" if d["growable"] else ""
            lines.append(f"  {d['name']:<18s}{size}  [{d['id']}]")
        lines.append("")

    if tank["food_stock"]:
        stock = ", ".join(f"{k} x{v}" for k, v in tank["food_stock"].items())
        lines.append(f"FOOD: {stock}")
        lines.append("")

    lines.append("TANKS:")
    for t in response["tanks"]:
        if t["unlocked"]:
            status = "active" if t["active"] else "unlocked"
        elif t["meets_requirements"]:
            status = "ready to unlock"
        else:
            status = f"locked ({t['unlock_label']})"
        lines.append(f"  {t['id']:.<20s} {status}")

    result = response.get("action_result")
    if result is not None:
        lines.append("")
        if result["success"]:
            lines.append("RESULT: OK")
        else:
            lines.append(f"RESULT: {result['error']} - {result['reason']}")

    return "\n".join(lines)
