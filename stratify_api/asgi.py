from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from .main import create_app  # noqa: E402

app = create_app()
