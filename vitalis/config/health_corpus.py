"""
Vitalis - Built-in Health Corpus
=================================
Reference passages loaded into the vector store by
``python -m vitalis.scripts.seed_db``.  Ids are stable so re-seeding
replaces rows instead of duplicating them.
"""

from vitalis.src.core.models import Passage

HEALTH_CORPUS: tuple[Passage, ...] = (
    # ── Exercise & Fitness ─────────────────────────────────────────────
    Passage(id="exercise-1", text="Regular cardiovascular exercise such as walking, running, swimming, or cycling for at least 150 minutes per week can significantly reduce the risk of heart disease, stroke, and diabetes. Start slowly and gradually increase intensity and duration.", category="exercise", source="WHO Guidelines", keywords=("cardio", "heart", "walking", "running", "swimming")),
    Passage(id="exercise-2", text="Strength training exercises should be performed at least twice a week, targeting all major muscle groups. This helps maintain bone density, muscle mass, and metabolic health as we age.", category="exercise", source="CDC Recommendations", keywords=("strength", "resistance", "muscle", "bone", "metabolism")),
    Passage(id="exercise-3", text="High-intensity interval training (HIIT) can provide significant health benefits in shorter time periods. Alternating between intense bursts and recovery periods improves cardiovascular fitness and burns calories efficiently.", category="exercise", source="Sports Medicine Research", keywords=("HIIT", "interval", "intensity", "cardiovascular", "calories")),
    Passage(id="exercise-4", text="Flexibility and balance exercises, including yoga and tai chi, help prevent falls, improve posture, and reduce muscle tension. These activities are especially important for older adults.", category="exercise", source="Physical Therapy Guidelines", keywords=("flexibility", "balance", "yoga", "tai chi", "posture")),

    # ── Nutrition & Diet ───────────────────────────────────────────────
    Passage(id="nutrition-1", text="A balanced diet should include 5-9 servings of fruits and vegetables daily, whole grains, lean proteins, and healthy fats. Limit processed foods, added sugars, and excessive sodium intake.", category="nutrition", source="Dietary Guidelines", keywords=("fruits", "vegetables", "whole grains", "protein", "healthy fats")),
    Passage(id="nutrition-2", text="Staying hydrated is crucial for optimal body function. Aim for 8 glasses of water daily, more if you are physically active or in hot climates. Water helps regulate body temperature and transport nutrients.", category="nutrition", source="Hydration Research", keywords=("water", "hydration", "temperature", "nutrients")),
    Passage(id="nutrition-3", text="Omega-3 fatty acids found in fish, walnuts, and flaxseeds support heart health, brain function, and reduce inflammation. Include these foods in your diet at least twice weekly.", category="nutrition", source="Nutritional Science", keywords=("omega-3", "fish", "heart health", "brain", "inflammation")),
    Passage(id="nutrition-4", text="High-fiber foods like beans, lentils, oats, and berries help maintain healthy digestion, control blood sugar levels, and may reduce cholesterol. Aim for 25-35 grams of fiber daily.", category="nutrition", source="Digestive Health Institute", keywords=("fiber", "beans", "digestion", "blood sugar", "cholesterol")),

    # ── Sleep & Rest ───────────────────────────────────────────────────
    Passage(id="sleep-1", text="Adults need 7-9 hours of quality sleep per night. Establish a consistent sleep schedule, create a comfortable sleep environment, and avoid screens before bedtime to improve sleep quality.", category="sleep", source="Sleep Foundation", keywords=("sleep", "rest", "schedule", "environment", "screens")),
    Passage(id="sleep-2", text="Poor sleep quality is linked to obesity, diabetes, cardiovascular disease, and mental health issues. If you experience persistent sleep problems, consult a healthcare provider.", category="sleep", source="Sleep Research", keywords=("insomnia", "health problems", "mental health", "medical consultation")),
    Passage(id="sleep-3", text="Creating a bedtime routine helps signal your body to prepare for sleep. This might include reading, gentle stretching, or meditation. Avoid caffeine and large meals close to bedtime.", category="sleep", source="Sleep Hygiene Guidelines", keywords=("bedtime routine", "reading", "meditation", "caffeine", "meals")),

    # ── Mental Health ──────────────────────────────────────────────────
    Passage(id="mental-health-1", text="Managing stress through relaxation techniques, meditation, deep breathing, or yoga can improve both mental and physical health. Regular practice helps reduce anxiety and improve emotional well-being.", category="mental-health", source="Mental Health Guidelines", keywords=("stress", "meditation", "anxiety", "relaxation", "yoga")),
    Passage(id="mental-health-2", text="Social connections and support systems are vital for mental health. Maintain relationships with family and friends, join community groups, or consider professional counseling when needed.", category="mental-health", source="Psychology Research", keywords=("social", "relationships", "support", "counseling", "community")),
    Passage(id="mental-health-3", text="Mindfulness and meditation practices can reduce symptoms of depression and anxiety. Even 10 minutes daily of focused breathing or mindful awareness can make a significant difference.", category="mental-health", source="Mindfulness Studies", keywords=("mindfulness", "meditation", "depression", "anxiety", "breathing")),

    # ── Preventive Care ────────────────────────────────────────────────
    Passage(id="preventive-care-1", text="Regular health screenings and check-ups can detect health issues early when they are most treatable. Follow recommended screening schedules for your age and risk factors.", category="preventive-care", source="Medical Guidelines", keywords=("screening", "check-up", "prevention", "early detection", "medical")),
    Passage(id="preventive-care-2", text="Vaccinations protect against serious and potentially deadly diseases. Stay up-to-date with recommended vaccines for your age group, including annual flu shots and COVID-19 boosters.", category="preventive-care", source="CDC Vaccination Guidelines", keywords=("vaccines", "immunization", "flu shot", "COVID-19", "prevention")),

    # ── Chronic Disease Management ─────────────────────────────────────
    Passage(id="chronic-disease-1", text="Type 2 diabetes can often be prevented or managed through lifestyle changes including healthy eating, regular exercise, weight management, and blood sugar monitoring.", category="chronic-disease", source="Diabetes Association", keywords=("diabetes", "blood sugar", "lifestyle", "weight management", "prevention")),
    Passage(id="chronic-disease-2", text="Hypertension (high blood pressure) can be managed through dietary changes, regular exercise, stress reduction, and medication when prescribed. Monitor blood pressure regularly at home.", category="chronic-disease", source="Cardiology Guidelines", keywords=("hypertension", "blood pressure", "diet", "exercise", "medication")),

    # ── Women's, Men's & Senior Health ─────────────────────────────────
    Passage(id="womens-health-1", text="Women should follow recommended screening schedules for breast cancer (mammograms), cervical cancer (Pap smears), and bone density tests. Early detection saves lives.", category="womens-health", source="Women's Health Guidelines", keywords=("breast cancer", "mammogram", "cervical cancer", "Pap smear", "screening")),
    Passage(id="mens-health-1", text="Men should discuss prostate cancer screening with their healthcare provider, especially after age 50 or earlier if there's a family history. PSA tests and digital rectal exams are common screening methods.", category="mens-health", source="Urology Association", keywords=("prostate cancer", "PSA test", "screening", "family history", "urology")),
    Passage(id="senior-health-1", text="Fall prevention in older adults includes regular exercise for strength and balance, home safety modifications, medication reviews, and vision checks. Falls are a leading cause of injury in seniors.", category="senior-health", source="Geriatrics Guidelines", keywords=("fall prevention", "balance", "home safety", "medication", "vision")),
    Passage(id="senior-health-2", text="Bone health becomes increasingly important with age. Adequate calcium and vitamin D intake, weight-bearing exercise, and bone density screenings help prevent osteoporosis and fractures.", category="senior-health", source="Osteoporosis Foundation", keywords=("bone health", "calcium", "vitamin D", "osteoporosis", "fractures")),
)
