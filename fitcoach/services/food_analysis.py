"""
Food image analyzer.

Forwards the image to an external vision endpoint when one is configured,
otherwise (or when that call fails) returns a deterministic estimate picked
from a small catalog of common plates. Callers only rely on the returned
dictionary shape.
"""

import base64
import hashlib
import logging

import requests

PLATE_OPTIONS = [
    {
        "food_name": "Rice, Beans and Grilled Beef Plate",
        "confidence": 0.85,
        "calories": 650,
        "protein": 35,
        "carbohydrates": 75,
        "fat": 18,
        "fiber": 8,
        "serving_size": "1 plate (300g)",
        "ingredients": [
            {"name": "White rice", "calories": 150, "protein": 3, "carbs": 30, "fat": 0.5},
            {"name": "Black beans", "calories": 120, "protein": 8, "carbs": 20, "fat": 1},
            {"name": "Grilled beef", "calories": 250, "protein": 20, "carbs": 0, "fat": 15},
            {"name": "Green salad", "calories": 30, "protein": 2, "carbs": 5, "fat": 0.2},
            {"name": "French fries", "calories": 100, "protein": 2, "carbs": 20, "fat": 3},
        ],
    },
    {
        "food_name": "Chicken Caesar Salad",
        "confidence": 0.78,
        "calories": 420,
        "protein": 28,
        "carbohydrates": 15,
        "fat": 30,
        "fiber": 4,
        "serving_size": "1 serving (250g)",
        "ingredients": [
            {"name": "Romaine lettuce", "calories": 20, "protein": 2, "carbs": 4, "fat": 0.1},
            {"name": "Grilled chicken breast", "calories": 200, "protein": 22, "carbs": 0, "fat": 8},
            {"name": "Caesar dressing", "calories": 150, "protein": 2, "carbs": 5, "fat": 18},
            {"name": "Croutons", "calories": 50, "protein": 2, "carbs": 6, "fat": 4},
        ],
    },
    {
        "food_name": "Burger with Fries",
        "confidence": 0.92,
        "calories": 850,
        "protein": 32,
        "carbohydrates": 68,
        "fat": 48,
        "fiber": 6,
        "serving_size": "1 combo (400g)",
        "ingredients": [
            {"name": "Burger bun", "calories": 180, "protein": 6, "carbs": 30, "fat": 4},
            {"name": "Beef patty", "calories": 280, "protein": 20, "carbs": 2, "fat": 22},
            {"name": "Cheddar cheese", "calories": 120, "protein": 6, "carbs": 1, "fat": 10},
            {"name": "French fries", "calories": 270, "protein": 4, "carbs": 35, "fat": 12},
        ],
    },
    {
        "food_name": "Salmon Poke Bowl",
        "confidence": 0.88,
        "calories": 520,
        "protein": 30,
        "carbohydrates": 55,
        "fat": 18,
        "fiber": 6,
        "serving_size": "1 bowl (350g)",
        "ingredients": [
            {"name": "Brown rice", "calories": 180, "protein": 4, "carbs": 35, "fat": 2},
            {"name": "Raw salmon", "calories": 200, "protein": 22, "carbs": 0, "fat": 12},
            {"name": "Avocado", "calories": 80, "protein": 2, "carbs": 4, "fat": 7},
            {"name": "Edamame", "calories": 60, "protein": 6, "carbs": 6, "fat": 2.5},
        ],
    },
]

RESULT_FIELDS = (
    "food_name", "confidence", "calories", "protein", "carbohydrates", "fat", "fiber",
    "serving_size", "ingredients", "tips",
)


def nutrition_tips(plate):
    tips = []
    if plate["calories"] > 700:
        tips.append("This plate is calorie dense. Consider a smaller portion or extra activity.")
    if plate["protein"] < 20:
        tips.append("Add a protein source for better satiety.")
    if plate["fiber"] < 5:
        tips.append("Add vegetables or whole grains to raise the fiber content.")
    if plate["fat"] > 30:
        tips.append("This plate is high in fat. Prefer lighter cooking methods.")
    if plate["carbohydrates"] > 60:
        tips.append("High in carbohydrates. Balance it with more protein and vegetables.")
    if not tips:
        tips.append("This plate looks nutritionally balanced!")
    return tips


def estimate_from_catalog(image_bytes):
    """Deterministic fallback: the digest picks the plate, the size scales the portion."""
    digest = hashlib.sha256(image_bytes).digest()
    plate = PLATE_OPTIONS[digest[0] % len(PLATE_OPTIONS)]

    size_variation = (len(image_bytes) % 100000) / 100000
    multiplier = 0.7 + size_variation * 0.6

    return {
        **plate,
        "calories": round(plate["calories"] * multiplier),
        "protein": round(plate["protein"] * multiplier, 1),
        "carbohydrates": round(plate["carbohydrates"] * multiplier, 1),
        "fat": round(plate["fat"] * multiplier, 1),
        "fiber": round(plate["fiber"] * multiplier, 1),
        "portion_multiplier": round(multiplier, 2),
        "tips": nutrition_tips(plate),
        "method": "catalog",
    }


class FoodAnalyzer:
    def __init__(self, config):
        self.url = config.get("FOOD_ANALYZER_URL")
        self.api_key = config.get("FOOD_ANALYZER_API_KEY")
        self.timeout = config.get("FOOD_ANALYZER_TIMEOUT", 15)

    def analyze(self, image_bytes):
        if self.url:
            try:
                return self._analyze_remote(image_bytes)
            except (requests.RequestException, ValueError, KeyError) as e:
                logging.error(f"Food analyzer request failed, using catalog estimate: {e}")
        return estimate_from_catalog(image_bytes)

    def _analyze_remote(self, image_bytes):
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        response = requests.post(
            self.url,
            json={"image": base64.b64encode(image_bytes).decode("ascii")},
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        result = {field: payload[field] for field in ("food_name", "calories")}
        for field in RESULT_FIELDS:
            result.setdefault(field, payload.get(field))
        result["ingredients"] = result["ingredients"] or []
        result["tips"] = result["tips"] or nutrition_tips({
            "calories": result["calories"] or 0,
            "protein": result["protein"] or 0,
            "fiber": result["fiber"] or 0,
            "fat": result["fat"] or 0,
            "carbohydrates": result["carbohydrates"] or 0,
        })
        result["method"] = "remote"
        return result
