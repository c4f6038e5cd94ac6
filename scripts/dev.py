import os
import argparse
import uvicorn
from dotenv import load_dotenv

REQUIRED_FOR_LOGIN = ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET")

def main():
    parser = argparse.ArgumentParser(description="Run the Typify dev server")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 8000)))
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    dotenv_path = os.path.join(base_dir, '.env')
    print(f"Loading env from {dotenv_path}...")
    load_dotenv(dotenv_path)

    # Local runs serve plain http, so the auth cookie cannot be Secure
    os.environ.setdefault("COOKIE_SECURE", "false")

    missing = [name for name in REQUIRED_FOR_LOGIN if not os.environ.get(name)]
    if missing:
        print(f"Google login disabled, missing: {', '.join(missing)}")
    if not os.environ.get("OPENAI_API_KEY"):
        print("OPENAI_API_KEY not set, post generation will fail")

    db_url = os.environ.get("DATABASE_URL")
    print(f"DATABASE_URL: {db_url.split('@')[-1]}" if db_url else "DATABASE_URL: sqlite (default)")

    print(f"Starting Typify at http://localhost:{args.port}")
    uvicorn.run("typify.main:app", host="0.0.0.0", port=args.port, reload=args.reload)

if __name__ == "__main__":
    main()
