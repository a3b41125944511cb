from authlib.integrations.flask_client import OAuth
from flask_login import LoginManager

login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message = "Please sign in with Google to open the ledger."
login_manager.login_message_category = "info"

oauth = OAuth()
