from datetime import datetime, timedelta, timezone
import sys

from db import store, StoreError
from surveys import FormState

SAMPLES = [
    {
        "name": "Dana Reyes", "unit": "Registrar", "confidence": "4", "literacy_level": "4",
        "reporting_reality": "Weekly enrollment counts pulled from Banner, shared with the deans.",
        "blindspot": "Which registration holds actually stop students from enrolling.",
        "magic_wand": "A live dashboard of holds by college.",
        "training_methods": ["peer", "vendor"], "lifecycle_role": ["transition", "year_round"],
    },
    {
        "name": "Sam Ortiz", "unit": "Financial Aid", "confidence": "2", "literacy_level": "2",
        "distrust_source": "Numbers change between the ISIR load and the packaging run.",
        "underused_tools": "Argos",
        "training_methods": ["trial"], "lifecycle_role": ["pre_enroll", "year_round", "return"],
    },
    {
        "name": "Priya Nair", "unit": "Admissions", "confidence": "3", "literacy_level": "3",
        "magic_wand": "Yield by high school, refreshed daily.",
        "training_methods": ["formal"], "lifecycle_role": ["pre_enroll"],
    },
]

try:
    store.init_schema()
    base = datetime.now(timezone.utc)
    for i, sample in enumerate(SAMPLES):
        state = FormState.from_form(sample)
        store.insert("responses", [state.to_row(submitted_at=base - timedelta(days=i))])
        print(f"✅ Resposta criada: {sample['unit']}")

    print("\n✅✅✅ BANCO POPULADO COM SUCESSO! ✅✅✅")

except StoreError as e:
    print(f"❌ Erro: {e}")
    sys.exit(1)

finally:
    store.dispose()
