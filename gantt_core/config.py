import os
from dotenv import load_dotenv

load_dotenv()

config = {
    'default_duration': float(os.getenv('BASES_GANTT_DEFAULT_DURATION', 3)),
    'view_mode': os.getenv('BASES_GANTT_VIEW_MODE', 'Week'),
    'log_level': os.getenv('BASES_GANTT_LOG_LEVEL', 'INFO').upper(),
    'config_key': os.getenv('BASES_GANTT_CONFIG_KEY', 'obsidianGantt'),
}
