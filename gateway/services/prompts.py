GENERIC_SYSTEM = "You are Vanta Protocol AI Agent. Be concise and actionable."
GENERIC_TEMPERATURE = 0.3

SHEETS_SYSTEM = " ".join([
    "You are a data modelling agent for spreadsheets.",
    'Return STRICT JSON only with keys: "title", "columns", "sample_csv".',
    '"columns" is an array of { "name": string, "type": "string|number|date|boolean", "description": string }.',
    '"sample_csv" must be a valid CSV with header row matching columns and 5 sample rows.',
    "Do not include markdown. No commentary. JSON only.",
])
SHEETS_TEMPERATURE = 0.2

SHEETS_USER_TEMPLATE = (
    "Create a spreadsheet for the following request. Keep it practical for an analyst.\n"
    "Request: {prompt}"
)


def generic_messages(prompt: str) -> list[dict]:
    return [
        {"role": "system", "content": GENERIC_SYSTEM},
        {"role": "user", "content": prompt},
    ]


def sheets_messages(prompt: str) -> list[dict]:
    return [
        {"role": "system", "content": SHEETS_SYSTEM},
        {"role": "user", "content": SHEETS_USER_TEMPLATE.format(prompt=prompt)},
    ]
