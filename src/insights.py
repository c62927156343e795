# ABOUTME: Heuristic tips, a 24-hour quick analysis, and change notices between snapshots.
# ABOUTME: Pure functions over WeatherSnapshot; thresholds are expressed in metric units.

import re

from src.conditions import convert_temperature, round_half_up
from src.models import WeatherAnalysis, WeatherNotice, WeatherSnapshot

KMH_PER_MS = 3.6
KMH_PER_MPH = 1.60934

RAIN_PATTERN = re.compile(r"rain|drizzle|thunder")
CLOUD_PATTERN = re.compile(r"cloud")

RAIN_WARNING_PROBABILITY = 0.5
TEMPERATURE_SWING_C = 5.0


def weather_tips(snapshot: WeatherSnapshot) -> list[str]:
    """Plain-language advice for the current conditions. Always returns at least one tip."""
    current = snapshot.current
    celsius = convert_temperature(current.temperature, snapshot.units, "metric")
    wind_kmh = current.wind_speed * (KMH_PER_MS if snapshot.units == "metric" else KMH_PER_MPH)
    description = current.conditions.description.lower()

    tips = []
    if celsius >= 35:
        tips.append("Very hot today, so stay hydrated and avoid peak sun.")
    elif celsius >= 30:
        tips.append("Warm day. Carry water and wear light clothing.")
    elif celsius <= 10:
        tips.append("Chilly conditions. Wear layers to stay warm.")

    if current.uv_index >= 7:
        tips.append("High UV. Use sunscreen and a cap outdoors.")
    elif current.uv_index >= 3:
        tips.append("Moderate UV. Sunscreen recommended.")

    if RAIN_PATTERN.search(description):
        tips.append("Chance of rain. Carry an umbrella or raincoat.")
    elif CLOUD_PATTERN.search(description):
        tips.append("Cloudy skies, pleasant for outdoor walks.")

    if wind_kmh >= 30:
        tips.append("Windy conditions. Secure loose items and drive carefully.")

    if current.humidity >= 85:
        tips.append("High humidity. Expect a muggy feel and ventilate indoor spaces.")

    if not tips:
        tips.append("Weather looks fine. Enjoy your day and stay prepared.")
    return tips


def analyze(snapshot: WeatherSnapshot) -> WeatherAnalysis:
    """Summarize the next 24 hours: high, low, rounded average and peak rain chance."""
    next_24 = snapshot.hourly[:24]
    temps = [h.temperature for h in next_24]
    max_pop = max((h.precipitation_probability for h in next_24), default=0.0)
    return WeatherAnalysis(
        current_temperature=snapshot.current.temperature,
        high_24h=max(temps) if temps else None,
        low_24h=min(temps) if temps else None,
        average_24h=round_half_up(sum(temps) / len(temps)) if temps else None,
        max_precipitation_probability=max_pop,
        rain_warning=max_pop >= RAIN_WARNING_PROBABILITY,
    )


def detect_changes(previous: WeatherSnapshot | None, current: WeatherSnapshot) -> list[WeatherNotice]:
    """Compare two consecutive snapshots of the same place and list what changed.

    The first snapshot of a session (``previous is None``) never produces notices.
    """
    if previous is None:
        return []

    notices = []
    before = previous.current.conditions.description
    after = current.current.conditions.description
    if before != after:
        notices.append(
            WeatherNotice(kind="conditions", title="Conditions changed", message=f"{before} → {after}")
        )

    was_rainy = analyze(previous).rain_warning
    now_rainy = analyze(current)
    if now_rainy.rain_warning and not was_rainy:
        chance = round_half_up(now_rainy.max_precipitation_probability * 100)
        notices.append(
            WeatherNotice(kind="rain", title="Rain likely", message=f"Up to {chance}% chance of rain in the next 24 hours.")
        )

    old_c = convert_temperature(previous.current.temperature, previous.units, "metric")
    new_c = convert_temperature(current.current.temperature, current.units, "metric")
    if abs(new_c - old_c) >= TEMPERATURE_SWING_C:
        direction = "risen" if new_c > old_c else "dropped"
        unit = "°C" if current.units == "metric" else "°F"
        notices.append(
            WeatherNotice(
                kind="temperature",
                title=f"Temperature has {direction}",
                message=f"Now {round_half_up(current.current.temperature)}{unit}.",
            )
        )
    return notices
