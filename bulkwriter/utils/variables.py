import os
from platformdirs import user_config_dir

APP_NAME = "bulkwriter"
BULKWRITER_HOME = os.getenv("BULKWRITER_HOME", user_config_dir(APP_NAME))
SETTINGS_FILE = os.path.join(BULKWRITER_HOME, "settings.ini")
