from .auth import role_required, get_current_user
