from .user import User, ROLES
from .trainer_profile import TrainerProfile, UNLIMITED
from .athlete_profile import AthleteProfile
from .nutritionist_profile import NutritionistProfile

from .exercise import Exercise
from .workout_template import WorkoutTemplate, WorkoutTemplateExercise
from .assigned_workout import AssignedWorkout, ASSIGNMENT_STATUSES
from .workout_log import WorkoutLog

from .food import Food
from .nutrition_plan import NutritionPlan, PLAN_STATUSES
from .meal import Meal, MealFood, MEAL_TYPES
from .food_log import FoodLog
from .food_analysis import FoodAnalysisHistory

from .progress_record import ProgressRecord, RECORD_TYPES
from .notification import Notification, NOTIFICATION_TYPES, PRIORITIES
from .message import Message, MESSAGE_TYPES

from .subscription import Subscription
from .payment import Payment
from .password_reset_token import PasswordResetToken

__all__ = [
    "User", "TrainerProfile", "AthleteProfile", "NutritionistProfile",
    "Exercise", "WorkoutTemplate", "WorkoutTemplateExercise", "AssignedWorkout", "WorkoutLog",
    "Food", "NutritionPlan", "Meal", "MealFood", "FoodLog", "FoodAnalysisHistory",
    "ProgressRecord", "Notification", "Message",
    "Subscription", "Payment", "PasswordResetToken",
    "ROLES", "UNLIMITED", "ASSIGNMENT_STATUSES", "PLAN_STATUSES", "MEAL_TYPES",
    "RECORD_TYPES", "NOTIFICATION_TYPES", "PRIORITIES", "MESSAGE_TYPES",
]
