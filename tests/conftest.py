import os

# Keep the module-level engine off the real database file
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAIL_HOST"] = ""
