from .auth import auth_bp
from .users import users_bp
from .trainers import trainers_bp
from .athletes import athletes_bp
from .workouts import workouts_bp
from .nutrition import nutrition_bp
from .subscriptions import subscriptions_bp
from .notifications import notifications_bp
from .payments import payments_bp
from .messages import messages_bp
from .analytics import analytics_bp

BLUEPRINTS = (
    (auth_bp, "/api/auth"),
    (users_bp, "/api/users"),
    (trainers_bp, "/api/trainers"),
    (athletes_bp, "/api/athletes"),
    (workouts_bp, "/api/workouts"),
    (nutrition_bp, "/api/nutrition"),
    (subscriptions_bp, "/api/subscriptions"),
    (notifications_bp, "/api/notifications"),
    (payments_bp, "/api/payments"),
    (messages_bp, "/api/messages"),
    (analytics_bp, "/api/analytics"),
)


def register_blueprints(app):
    for blueprint, prefix in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=prefix)
