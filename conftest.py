import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Keep tests offline: real keys from the environment must never be used
for _var in (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_AI_API_KEY",
    "PERPLEXITY_API_KEY",
):
    os.environ.pop(_var, None)

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))
