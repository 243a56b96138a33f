# Entry point for `uvicorn main:app --reload`
from healthnet.main import app
