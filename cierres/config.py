# cierres/config.py

import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

    # PostgreSQL (Render / local)
    # Render a veces entrega DATABASE_URL como postgres:// (deprecated)
    uri = os.getenv("DATABASE_URL", "postgresql://localhost/cierres_caja")
    if uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)

    # Forzar driver pg8000 (para evitar psycopg2 en Render)
    if uri.startswith("postgresql://") and "+pg8000" not in uri:
        uri = uri.replace("postgresql://", "postgresql+pg8000://", 1)

    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Rutas de archivos
    EVIDENCE_FOLDER = os.getenv("EVIDENCE_FOLDER", "evidencia")
    OUTPUT_FOLDER = os.getenv("OUTPUT_FOLDER", "outputs")

    # Negocios
    PUNTOS = [
        "La Glorieta",
        "La Glorieta Express",
        "Salomé Restaurante",
        "Salomé Heladería",
    ]

    # nombre POS (lowercase) -> nombre estándar
    PUNTOS_ALIASES = {
        "la glorieta": "La Glorieta",
        "glorieta": "La Glorieta",
        "la glorieta express": "La Glorieta Express",
        "glorieta express": "La Glorieta Express",
        "la glorieta original": "La Glorieta Express",
        "salome delicatessen resto": "Salomé Restaurante",
        "salomé delicatessen resto": "Salomé Restaurante",
        "salome restaurante": "Salomé Restaurante",
        "salomé restaurante": "Salomé Restaurante",
        "salome heladeria": "Salomé Heladería",
        "salomé heladería": "Salomé Heladería",
        "salome heladería": "Salomé Heladería",
        "salomé heladeria": "Salomé Heladería",
    }

    # Carpetas de soportes por punto/fecha
    EVIDENCE_SUBFOLDERS = [
        "01_Gastos",
        "02_Banco",
        "03_Cierres_POS",
        "04_Comprobantes",
        "05_Pagos_Entrantes",
        "06_Pagos_Salientes",
        "07_Otros",
    ]

    # Auditoría (COP)
    TOLERANCIA_COP = int(os.getenv("TOLERANCIA_COP", "500"))
    UMBRAL_BAJO = int(os.getenv("UMBRAL_BAJO", "5000"))
    UMBRAL_MEDIO = int(os.getenv("UMBRAL_MEDIO", "20000"))

    # Claude
    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
    CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5-20250929")
    CLAUDE_MAX_TOKENS = int(os.getenv("CLAUDE_MAX_TOKENS", "8192"))
    CLAUDE_EXTRACT_TOKENS = int(os.getenv("CLAUDE_EXTRACT_TOKENS", "4096"))
    CLAUDE_BATCH_MAX_BYTES = 20 * 1024 * 1024

    # Solo imágenes/PDF hasta 4MB por archivo
    EVIDENCE_MAX_FILE_BYTES = 4 * 1024 * 1024

    # Correo
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    MAIL_FROM = os.getenv("MAIL_FROM", "Cierres de Caja <alertas@localhost>")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")

    # Endpoints cron
    CRON_SECRET = os.getenv("CRON_SECRET", "")

    # Ingesta externa (atajos iOS, etc.): token en el body
    API_TOKEN = os.getenv("API_TOKEN", "")

    TIMEZONE = os.getenv("TIMEZONE", "America/Bogota")
    WORKER_POLL_SECONDS = int(os.getenv("WORKER_POLL_SECONDS", "30"))

    # Limite upload (25MB)
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024
