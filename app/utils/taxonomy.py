# app/utils/taxonomy.py

MOVEMENT_PATTERNS: tuple[str, ...] = (
    "horizontal_push",
    "horizontal_pull",
    "vertical_push",
    "vertical_pull",
    "squat",
    "hinge",
    "lunge",
    "carry",
    "rotation",
    "isolation",
    "core",
)

DIFFICULTIES: tuple[str, ...] = (
    "beginner",
    "intermediate",
    "advanced",
)

EQUIPMENT_TYPES: tuple[str, ...] = (
    "barbell",
    "dumbbell",
    "kettlebell",
    "cable",
    "machine",
    "bodyweight",
    "bench",
    "pull_up_bar",
    "resistance_band",
)

BODYWEIGHT = "bodyweight"

# Assumed when an organisation has not configured its equipment
DEFAULT_EQUIPMENT: tuple[str, ...] = (
    "barbell",
    "dumbbell",
    "kettlebell",
    "cable",
    "machine",
    "bodyweight",
    "bench",
    "pull_up_bar",
)

MUSCLE_GROUPS: tuple[str, ...] = (
    "chest",
    "back",
    "shoulders",
    "biceps",
    "triceps",
    "quadriceps",
    "hamstrings",
    "glutes",
    "abs",
    "calves",
)

# ─────────────────────────────────────────
# Display labels, per locale
# ─────────────────────────────────────────

PATTERN_LABELS: dict[str, dict[str, str]] = {
    "es": {
        "horizontal_push": "empuje horizontal",
        "horizontal_pull": "jalon horizontal",
        "vertical_push": "empuje vertical",
        "vertical_pull": "jalon vertical",
        "squat": "sentadilla",
        "hinge": "bisagra de cadera",
        "lunge": "zancada",
        "carry": "acarreo",
        "rotation": "rotacion",
        "isolation": "aislamiento",
        "core": "core",
    },
    "en": {
        "horizontal_push": "horizontal push",
        "horizontal_pull": "horizontal pull",
        "vertical_push": "vertical push",
        "vertical_pull": "vertical pull",
        "squat": "squat",
        "hinge": "hip hinge",
        "lunge": "lunge",
        "carry": "carry",
        "rotation": "rotation",
        "isolation": "isolation",
        "core": "core",
    },
}

MUSCLE_LABELS: dict[str, dict[str, str]] = {
    "es": {
        "chest": "pecho",
        "back": "espalda",
        "shoulders": "hombros",
        "biceps": "biceps",
        "triceps": "triceps",
        "quadriceps": "cuadriceps",
        "hamstrings": "isquiotibiales",
        "glutes": "gluteos",
        "abs": "abdominales",
        "calves": "pantorrillas",
    },
    "en": {m: m for m in MUSCLE_GROUPS},
}

DIFFICULTY_LABELS: dict[str, dict[str, str]] = {
    "es": {
        "beginner": "principiante",
        "intermediate": "intermedio",
        "advanced": "avanzado",
    },
    "en": {d: d for d in DIFFICULTIES},
}
