import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the gallery API under uvicorn."""
  port = os.getenv("PORT", "8002")
  logger.info("Starting homework gallery on port %s...", port)
  # Replace the current process so signals reach uvicorn directly.
  args = ["uvicorn", "homework_gallery.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"]
  os.execvp("uvicorn", args)


if __name__ == "__main__":
  main()
