from datetime import date, datetime

import pytest
import requests

from fitcoach.errors import NotFoundError, ValidationError
from fitcoach.models import Food, FoodAnalysisHistory, Meal, MealFood, NutritionPlan
from fitcoach.services import nutrition
from fitcoach.services.food_analysis import FoodAnalyzer, PLATE_OPTIONS, estimate_from_catalog


def _plan_data(foods, **overrides):
    oatmeal, banana = foods
    data = {
        "name": "Cutting",
        "start_date": date(2026, 3, 1),
        "total_calories": 2000,
        "meals": [
            {
                "meal_type": "breakfast",
                "name": "Breakfast",
                "foods": [
                    {"food_id": oatmeal.id, "quantity": 2, "unit": "serving"},
                    {"food_id": banana.id, "quantity": 1, "unit": "unit"},
                ],
            },
            {
                "meal_type": "snack",
                "name": "Snack",
                "foods": [{"food_id": banana.id, "quantity": 0.5, "unit": "unit"}],
            },
        ],
    }
    data.update(overrides)
    return data


def test_meal_totals_sum_quantity_times_serving(db, nutritionist, athlete, foods):
    plan = nutrition.create_plan(db, nutritionist.nutritionist_profile, athlete.athlete_profile.id, _plan_data(foods))
    breakfast = plan.meals[0]

    totals = nutrition.calculate_totals(db, "meal", breakfast.id)

    assert totals["calories"] == 250
    assert totals["protein"] == 8.5
    assert set(totals) == {"calories", "protein", "carbs", "fat", "fiber"}
    assert nutrition.calculate_totals(db, "plan", plan.id)["calories"] == 275


def test_create_plan_orders_meals_and_links_nutritionist(db, nutritionist, athlete, foods):
    plan = nutrition.create_plan(db, nutritionist.nutritionist_profile, athlete.athlete_profile.id, _plan_data(foods))

    assert [m.order_index for m in plan.meals] == [1, 2]
    assert plan.status == "active"
    assert athlete.athlete_profile.nutritionist_id == nutritionist.id
    assert nutritionist.nutritionist_profile.client_count == 1


def test_second_plan_does_not_claim_another_slot(db, nutritionist, athlete, foods):
    profile = nutritionist.nutritionist_profile
    nutrition.create_plan(db, profile, athlete.athlete_profile.id, _plan_data(foods))
    nutrition.create_plan(db, profile, athlete.athlete_profile.id, _plan_data(foods, name="Bulking"))

    assert profile.client_count == 1
    assert len(nutrition.list_plans(db, athlete)) == 2


def test_meal_without_foods_persists_nothing(db, nutritionist, athlete, foods):
    data = _plan_data(foods)
    data["meals"][1]["foods"] = []

    with pytest.raises(ValidationError) as exc:
        nutrition.create_plan(db, nutritionist.nutritionist_profile, athlete.athlete_profile.id, data)

    assert "meals[1].foods" in exc.value.errors
    assert db.query(NutritionPlan).count() == 0
    assert db.query(Meal).count() == 0
    assert db.query(MealFood).count() == 0


@pytest.mark.parametrize("overrides", [
    {"total_calories": 500},
    {"total_calories": 6000},
    {"protein_grams": -1},
    {"meals": []},
])
def test_plan_bounds(db, nutritionist, athlete, foods, overrides):
    with pytest.raises(ValidationError):
        nutrition.create_plan(
            db, nutritionist.nutritionist_profile, athlete.athlete_profile.id, _plan_data(foods, **overrides)
        )
    assert db.query(NutritionPlan).count() == 0


def test_unknown_food_rejected(db, nutritionist, athlete, foods):
    data = _plan_data(foods)
    data["meals"][0]["foods"][0]["food_id"] = 9999
    with pytest.raises(ValidationError):
        nutrition.create_plan(db, nutritionist.nutritionist_profile, athlete.athlete_profile.id, data)


def test_plan_access_is_scoped_to_owner(db, make_user, athlete, foods):
    owner, other = make_user("nutritionist"), make_user("nutritionist")
    plan = nutrition.create_plan(db, owner.nutritionist_profile, athlete.athlete_profile.id, _plan_data(foods))

    assert nutrition.get_plan(db, athlete, plan.id).id == plan.id
    with pytest.raises(NotFoundError):
        nutrition.get_plan(db, other, plan.id)
    with pytest.raises(NotFoundError):
        nutrition.calculate_totals(db, "plan", plan.id, user=other)
    with pytest.raises(NotFoundError):
        nutrition.update_plan_status(db, other.nutritionist_profile, plan.id, "paused")

    nutrition.update_plan_status(db, owner.nutritionist_profile, plan.id, "paused")
    assert [p.id for p in nutrition.list_plans(db, owner, status="paused")] == [plan.id]


def test_food_log_day_totals(db, athlete, foods):
    oatmeal, banana = foods
    profile = athlete.athlete_profile
    nutrition.log_food_intake(db, profile, oatmeal.id, 1, "serving", "breakfast", logged_at=datetime(2026, 3, 18, 8))
    nutrition.log_food_intake(db, profile, banana.id, 2, "unit", "snack", logged_at=datetime(2026, 3, 18, 16))
    nutrition.log_food_intake(db, profile, banana.id, 1, "unit", "snack", logged_at=datetime(2026, 3, 19, 9))

    day = nutrition.list_food_logs(db, profile, date(2026, 3, 18))

    assert len(day["logs"]) == 2
    assert day["totals"]["calories"] == 200

    with pytest.raises(ValidationError):
        nutrition.log_food_intake(db, profile, oatmeal.id, 0.05, "serving", "lunch")


def test_search_foods(db, foods):
    db.add(Food(name="Banana Bread", calories_per_serving=300, is_verified=True))
    db.commit()

    assert [f.name for f in nutrition.search_foods(db, "chiq")] == ["Banana"]
    assert [f.name for f in nutrition.search_foods(db, "BANANA")] == ["Banana Bread", "Banana"]
    assert len(nutrition.search_foods(db, "banana", limit=1)) == 1
    with pytest.raises(ValidationError):
        nutrition.search_foods(db, "a")


def test_catalog_estimate_is_deterministic():
    image = b"\x89PNG fake image bytes" * 10

    first, second = estimate_from_catalog(image), estimate_from_catalog(image)

    assert first == second
    assert first["food_name"] in {p["food_name"] for p in PLATE_OPTIONS}
    assert 0.7 <= first["portion_multiplier"] <= 1.3
    assert first["tips"]


def test_remote_analyzer_failure_falls_back(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(requests, "post", boom)
    analyzer = FoodAnalyzer({"FOOD_ANALYZER_URL": "http://analyzer.invalid/analyze"})

    result = analyzer.analyze(b"plate")
    assert result["method"] == "catalog"


def test_analysis_is_stored_in_history(db, athlete):
    result = nutrition.analyze_food_image(db, athlete, b"lunch photo", "uploads/../lunch.jpg")

    entry = db.query(FoodAnalysisHistory).one()
    assert result["history_id"] == entry.id
    assert entry.image_path == "lunch.jpg"
    assert [e.id for e in nutrition.list_analysis_history(db, athlete)] == [entry.id]
