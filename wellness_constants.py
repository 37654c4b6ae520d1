# wellness_constants.py
"""
Closed label sets and alias tables shared by normalization, scoring and the
AI resolver.

Keeping every spelling in one place prevents drift between the spreadsheet
importer, the remote payload mapper and the scoring formulas.
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Canonical labels
# -----------------------------------------------------------------------------
NON_SMOKER = "Non-smoker"
FORMER_SMOKER = "Former smoker"
CURRENT_SMOKER = "Current smoker"
SMOKING_STATUSES = (NON_SMOKER, FORMER_SMOKER, CURRENT_SMOKER)

EXERCISE_RARELY = "Rarely"
EXERCISE_1_2 = "1-2x/week"
EXERCISE_3_4 = "3-4x/week"
EXERCISE_5_PLUS = "5+x/week"
EXERCISE_FREQUENCIES = (EXERCISE_RARELY, EXERCISE_1_2, EXERCISE_3_4, EXERCISE_5_PLUS)

STRESS_LOW = "Low"
STRESS_MODERATE = "Moderate"
STRESS_HIGH = "High"
STRESS_LEVELS = (STRESS_LOW, STRESS_MODERATE, STRESS_HIGH)

RISK_LOW = "Low"
RISK_MODERATE = "Moderate"
RISK_HIGH = "High"
RISK_LEVELS = (RISK_LOW, RISK_MODERATE, RISK_HIGH)

GENDERS = ("Male", "Female")
YES_NO = ("Yes", "No")

# Past diseases
NO_PAST_DISEASE = "None"
HYPERTENSION = "Hypertension"
TYPE_2_DIABETES = "Type 2 Diabetes"
HEART_DISEASE = "Heart Disease"
STROKE = "Stroke"
ASTHMA = "Asthma"
OBESITY = "Obesity"
HIGH_CHOLESTEROL = "High Cholesterol"
KIDNEY_DISEASE = "Kidney Disease"
THYROID_DISORDER = "Thyroid Disorder"
PAST_DISEASES = (
    HYPERTENSION,
    TYPE_2_DIABETES,
    HEART_DISEASE,
    STROKE,
    ASTHMA,
    OBESITY,
    HIGH_CHOLESTEROL,
    KIDNEY_DISEASE,
    THYROID_DISORDER,
    NO_PAST_DISEASE,
)

# Order matters: first keyword hit wins.
PAST_DISEASE_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("diabet",), TYPE_2_DIABETES),
    (("hypertens", "high bp", "blood pressure"), HYPERTENSION),
    (("heart",), HEART_DISEASE),
    (("stroke",), STROKE),
    (("asthma",), ASTHMA),
    (("obes", "overweight"), OBESITY),
    (("cholesterol", "ldl"), HIGH_CHOLESTEROL),
    (("kidney",), KIDNEY_DISEASE),
    (("thyroid",), THYROID_DISORDER),
]

# -----------------------------------------------------------------------------
# Enum aliases (keys are trimmed + lowercased; a second lookup strips
# everything that is not a-z0-9)
# -----------------------------------------------------------------------------
ENUM_ALIASES: dict[str, dict[str, str]] = {
    "gender": {
        "male": "Male",
        "m": "Male",
        "man": "Male",
        "female": "Female",
        "f": "Female",
        "woman": "Female",
    },
    "smoking status": {
        "non-smoker": NON_SMOKER,
        "non smoker": NON_SMOKER,
        "nonsmoker": NON_SMOKER,
        "never": NON_SMOKER,
        "never smoked": NON_SMOKER,
        "no": NON_SMOKER,
        "former smoker": FORMER_SMOKER,
        "former": FORMER_SMOKER,
        "ex-smoker": FORMER_SMOKER,
        "ex smoker": FORMER_SMOKER,
        "exsmoker": FORMER_SMOKER,
        "quit": FORMER_SMOKER,
        "current smoker": CURRENT_SMOKER,
        "current": CURRENT_SMOKER,
        "smoker": CURRENT_SMOKER,
        "yes": CURRENT_SMOKER,
    },
    "exercise frequency": {
        "rarely": EXERCISE_RARELY,
        "never": EXERCISE_RARELY,
        "none": EXERCISE_RARELY,
        "0": EXERCISE_RARELY,
        "1-2x/week": EXERCISE_1_2,
        "1-2x / week": EXERCISE_1_2,
        "1-2": EXERCISE_1_2,
        "12xweek": EXERCISE_1_2,
        "12timesperweek": EXERCISE_1_2,
        "3-4x/week": EXERCISE_3_4,
        "3-4x / week": EXERCISE_3_4,
        "3-4": EXERCISE_3_4,
        "34xweek": EXERCISE_3_4,
        "34timesperweek": EXERCISE_3_4,
        "5+x/week": EXERCISE_5_PLUS,
        "5+x / week": EXERCISE_5_PLUS,
        "5+": EXERCISE_5_PLUS,
        "5xweek": EXERCISE_5_PLUS,
        "5timesperweek": EXERCISE_5_PLUS,
        "daily": EXERCISE_5_PLUS,
    },
    "family history": {
        "yes": "Yes",
        "y": "Yes",
        "true": "Yes",
        "1": "Yes",
        "no": "No",
        "n": "No",
        "false": "No",
        "0": "No",
        "none": "No",
    },
    "stress level": {
        "low": STRESS_LOW,
        "moderate": STRESS_MODERATE,
        "medium": STRESS_MODERATE,
        "mid": STRESS_MODERATE,
        "high": STRESS_HIGH,
    },
}

# -----------------------------------------------------------------------------
# Spreadsheet header aliases (keys already normalized to lowercase a-z0-9)
# -----------------------------------------------------------------------------
HEADER_ALIASES: dict[str, str] = {
    "fullname": "full_name",
    "name": "full_name",
    "employeename": "full_name",
    "employee": "full_name",
    "email": "email",
    "emailaddress": "email",
    "department": "department",
    "dept": "department",
    "team": "department",
    "gender": "gender",
    "sex": "gender",
    "age": "age",
    "ageyears": "age",
    "weight": "weight",
    "weightkg": "weight",
    "bmi": "bmi",
    "bodymassindex": "bmi",
    "bp": "blood_pressure",
    "bloodpressure": "blood_pressure",
    "bloodpressuremmhg": "blood_pressure",
    "fastingbloodglucose": "fasting_glucose",
    "fastingbloodglucosemgdl": "fasting_glucose",
    "fastingglucose": "fasting_glucose",
    "glucose": "fasting_glucose",
    "bloodglucose": "fasting_glucose",
    "cholesterol": "cholesterol",
    "cholesterolmgdl": "cholesterol",
    "totalcholesterol": "cholesterol",
    "smokingstatus": "smoking_status",
    "smoking": "smoking_status",
    "smoker": "smoking_status",
    "exercisefrequency": "exercise_frequency",
    "exercise": "exercise_frequency",
    "familyhistory": "family_history",
    "familyhistoryofdisease": "family_history",
    "stresslevel": "stress_level",
    "stress": "stress_level",
    "pastdiseases": "past_diseases",
    "pastdisease": "past_diseases",
    "pastconditions": "past_diseases",
    "medicalhistory": "past_diseases",
}

REQUIRED_IMPORT_FIELDS: list[str] = [
    "full_name",
    "gender",
    "age",
    "bmi",
    "blood_pressure",
    "fasting_glucose",
    "cholesterol",
    "smoking_status",
    "exercise_frequency",
    "family_history",
    "stress_level",
]

NUMERIC_IMPORT_FIELDS: list[str] = ["age", "bmi", "fasting_glucose", "cholesterol"]

# (logical field, enum table name) in validation order
ENUM_IMPORT_FIELDS: list[tuple[str, str]] = [
    ("gender", "gender"),
    ("smoking_status", "smoking status"),
    ("exercise_frequency", "exercise frequency"),
    ("family_history", "family history"),
    ("stress_level", "stress level"),
]

# -----------------------------------------------------------------------------
# AI disease labels (first pattern hit wins)
# -----------------------------------------------------------------------------
KNOWN_DISEASE_PATTERNS: list[tuple[str, str]] = [
    (r"hypertension", "Hypertension"),
    (r"diabetes", "Diabetes"),
    (r"cardiovascular", "Cardiovascular Disease"),
    (r"heart\s*disease", "Heart Disease"),
    (r"stroke", "Stroke"),
    (r"obesity|obese", "Obesity"),
    (r"cholesterol", "High Cholesterol"),
    (r"kidney", "Kidney Disease"),
    (r"asthma", "Asthma"),
    (r"thyroid", "Thyroid Disorder"),
]
FALLBACK_DISEASE_LABEL = "Health Risk"

# Candidate names that are really table headers or summary rows
HEADER_LIKE_TOKENS = {
    "#",
    "no",
    "name",
    "names",
    "employee",
    "employees",
    "member",
    "score",
    "risk",
    "rank",
    "percent",
    "percentage",
    "probability",
    "total",
    "average",
    "overall",
    "mean",
    "summary",
    "level",
}
