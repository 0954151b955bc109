import logging

from fitcoach.models import Exercise, Food

# name, category, muscle groups, equipment, difficulty
EXERCISES = [
    ("Push-ups", "Chest", ["Chest", "Triceps", "Shoulders"], None, "beginner"),
    ("Squats", "Legs", ["Quadriceps", "Glutes", "Hamstrings"], None, "beginner"),
    ("Deadlifts", "Back", ["Hamstrings", "Glutes", "Lower Back", "Traps"], "Barbell", "intermediate"),
    ("Bench Press", "Chest", ["Chest", "Triceps", "Shoulders"], "Barbell, Bench", "intermediate"),
    ("Pull-ups", "Back", ["Lats", "Biceps", "Rhomboids"], "Pull-up bar", "intermediate"),
    ("Planks", "Core", ["Core", "Shoulders"], None, "beginner"),
    ("Lunges", "Legs", ["Quadriceps", "Glutes", "Hamstrings"], None, "beginner"),
    ("Burpees", "Cardio", ["Full Body"], None, "advanced"),
]

INSTRUCTIONS = {
    "Push-ups": "Start in plank position, lower until the chest nearly touches the floor, push back up.",
    "Squats": "Feet shoulder-width apart, push the hips back and down, return to standing.",
    "Deadlifts": "Bar over mid-foot, grip shoulder-width, lift by extending hips and knees.",
    "Bench Press": "Lie under the bar, lower it to the chest, press back up.",
    "Pull-ups": "Hang with an overhand grip, pull until the chin passes the bar, lower slowly.",
    "Planks": "Rest on the forearms and hold a straight line from head to heels.",
    "Lunges": "Step forward, lower until both knees reach 90 degrees, step back.",
    "Burpees": "Squat, jump back to plank, push-up, jump the feet in and jump up.",
}

# name, serving size, unit, calories, protein, carbs, fat, fiber, category
FOODS = [
    ("Chicken Breast", "100", "g", 165, 31, 0, 3.6, 0, "Meat"),
    ("Brown Rice", "100", "g", 123, 2.6, 23, 0.9, 1.8, "Grains"),
    ("Broccoli", "100", "g", 34, 2.8, 7, 0.4, 2.6, "Vegetables"),
    ("Salmon", "100", "g", 208, 25, 0, 12, 0, "Fish"),
    ("Oatmeal", "100", "g", 389, 16.9, 66, 6.9, 10.6, "Grains"),
    ("Greek Yogurt", "100", "g", 59, 10, 3.6, 0.4, 0, "Dairy"),
    ("Banana", "1", "medium", 105, 1.3, 27, 0.4, 3.1, "Fruits"),
    ("Almonds", "28", "g", 164, 6, 6, 14, 3.5, "Nuts"),
]


def seed_database(db):
    """Insert the public exercise library and verified foods; rows that already exist are skipped."""
    known_exercises = {name for (name,) in db.query(Exercise.name)}
    known_foods = {name for (name,) in db.query(Food.name)}

    added = 0
    for name, category, muscles, equipment, difficulty in EXERCISES:
        if name in known_exercises:
            continue
        db.add(Exercise(
            name=name,
            category=category,
            muscle_groups=muscles,
            equipment=equipment or "None",
            instructions=INSTRUCTIONS[name],
            difficulty_level=difficulty,
            is_public=True,
        ))
        added += 1

    for name, size, unit, calories, protein, carbs, fat, fiber, category in FOODS:
        if name in known_foods:
            continue
        db.add(Food(
            name=name,
            serving_size=size,
            serving_unit=unit,
            calories_per_serving=calories,
            protein_per_serving=protein,
            carbs_per_serving=carbs,
            fat_per_serving=fat,
            fiber_per_serving=fiber,
            category=category,
            is_verified=True,
        ))
        added += 1

    db.commit()
    logging.info(f"Seeded {added} rows")
    return added
