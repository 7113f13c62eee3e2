"""Locale table and the few UI strings the orchestrators need.

Lookups fall back to English when a key has no entry for the active locale.
"""

DEFAULT_LOCALE = "en"

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "hi": "Hindi",
    "ar": "Arabic",
    "zh": "Chinese",
}

STRINGS: dict[str, dict[str, str]] = {
    "ERROR_TITLE": {
        "en": "Error",
        "es": "Error",
        "fr": "Erreur",
        "de": "Fehler",
    },
    "ERROR_SPEECH_TITLE": {
        "en": "Speech Error",
        "es": "Error de voz",
        "fr": "Erreur vocale",
        "de": "Sprachfehler",
    },
    "ERROR_TRANSLATION": {
        "en": "Failed to translate content.",
        "es": "No se pudo traducir el contenido.",
        "fr": "Impossible de traduire le contenu.",
        "de": "Inhalt konnte nicht übersetzt werden.",
    },
    "TTS_INFO_FOR": {
        "en": "Here is the information for",
        "es": "Aquí está la información sobre",
        "fr": "Voici les informations sur",
        "de": "Hier sind die Informationen zu",
    },
    "ACCORDION_TITLE_USES": {
        "en": "Uses",
        "es": "Usos",
        "fr": "Utilisations",
        "de": "Anwendungen",
    },
    "ACCORDION_TITLE_SIDE_EFFECTS": {
        "en": "Side Effects",
        "es": "Efectos secundarios",
        "fr": "Effets secondaires",
        "de": "Nebenwirkungen",
    },
    "ACCORDION_TITLE_DOSAGE": {
        "en": "Dosage Guidelines",
        "es": "Pautas de dosificación",
        "fr": "Posologie",
        "de": "Dosierungsrichtlinien",
    },
    "ERROR_NAME_TOO_SHORT": {
        "en": "Medication name must be at least 2 characters.",
    },
    "ERROR_NAME_TOO_LONG": {
        "en": "Medication name must be at most 50 characters.",
    },
    "ERROR_CANNOT_BE_EMPTY": {
        "en": "Medication name cannot be empty.",
        "es": "El nombre del medicamento no puede estar vacío.",
        "fr": "Le nom du médicament ne peut pas être vide.",
        "de": "Der Medikamentenname darf nicht leer sein.",
    },
    "ERROR_MED_ALREADY_ADDED": {
        "en": "This medication has already been added.",
        "es": "Este medicamento ya ha sido añadido.",
        "fr": "Ce médicament a déjà été ajouté.",
        "de": "Dieses Medikament wurde bereits hinzugefügt.",
    },
    "ERROR_NOT_ENOUGH_MEDS": {
        "en": "Please add at least two medications to check for interactions.",
        "es": "Añada al menos dos medicamentos para comprobar las interacciones.",
        "fr": "Veuillez ajouter au moins deux médicaments pour vérifier les interactions.",
        "de": "Bitte fügen Sie mindestens zwei Medikamente hinzu.",
    },
    "ERROR_NO_FILE": {
        "en": "Please select a file to analyze.",
        "es": "Seleccione un archivo para analizar.",
        "fr": "Veuillez sélectionner un fichier à analyser.",
        "de": "Bitte wählen Sie eine Datei zur Analyse aus.",
    },
    "ERROR_AUDIO_NOT_READY": {
        "en": "Audio is still being prepared. Please try again in a moment.",
    },
    "ERROR_AUDIO_PLAYBACK": {
        "en": "Could not play the audio.",
    },
    "ERROR_MICROPHONE": {
        "en": "Could not start microphone. Please check permissions.",
    },
    "ERROR_UNEXPECTED": {
        "en": "Something went wrong. Please try again.",
        "es": "Algo salió mal. Inténtalo de nuevo.",
        "fr": "Une erreur est survenue. Veuillez réessayer.",
        "de": "Etwas ist schiefgelaufen. Bitte versuche es erneut.",
    },
    "DISCLAIMER_TITLE": {
        "en": "Medical Disclaimer",
        "es": "Aviso médico",
        "fr": "Avertissement médical",
        "de": "Medizinischer Hinweis",
    },
    "DISCLAIMER_TEXT": {
        "en": (
            "MediSage provides general information only and is not a substitute for "
            "professional medical advice. Always consult a doctor or pharmacist."
        ),
    },
}


def normalize_locale(locale: str | None) -> str:
    locale = (locale or "").strip().lower()
    return locale if locale in LANGUAGE_NAMES else DEFAULT_LOCALE


def language_name(locale: str) -> str:
    return LANGUAGE_NAMES.get(locale, LANGUAGE_NAMES[DEFAULT_LOCALE])


def t(key: str, locale: str) -> str:
    entry = STRINGS[key]
    return entry.get(locale) or entry[DEFAULT_LOCALE]
