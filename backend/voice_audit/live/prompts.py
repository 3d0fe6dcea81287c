from voice_audit.catalogue import Catalogue

RECORD_ANSWER_TOOL = {
    "type": "function",
    "name": "record_answer",
    "description": "Enregistre la réponse validée pour la question courante et avance à la suivante.",
    "parameters": {
        "type": "object",
        "properties": {
            "questionId": {
                "type": "string",
                "description": "L'ID de la question à laquelle l'utilisateur répond (ex: q01).",
            },
            "value": {
                "type": "string",
                "description": "La valeur sélectionnée ou saisie.",
            },
            "multiValues": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Tableau de valeurs pour les choix multiples.",
            },
            "autreValue": {
                "type": "string",
                "description": "Valeur libre si l'option 'Autre' est choisie.",
            },
        },
        "required": ["questionId"],
    },
}

TECHNICAL_CLOSURE_TOOL = {
    "type": "function",
    "name": "technical_closure",
    "description": "Clôture l'audit suite à des erreurs techniques ou incompréhensions répétées.",
    "parameters": {"type": "object", "properties": {}},
}

AUDIT_TOOLS = [RECORD_ANSWER_TOOL, TECHNICAL_CLOSURE_TOOL]


def build_system_instruction(catalogue: Catalogue) -> str:
    question_lines = "\n".join(f'- {question.id}: "{question.label}"' for question in catalogue)
    return f"""Tu es AMAI, consultant senior Memo5D. Ta mission est de réaliser un audit de maturité IA et Digital.

RÈGLES DE VOIX :
- Voix grave, calme, posée mais dynamique.

RÈGLES DE FLUX ET SÉQUENÇAGE :
1. Une seule question par intervention.
2. Attends [EVENT: RECORD_SUCCESS] après record_answer avant de passer à la question suivante.
3. Ne prononce jamais de noms d'outils ni d'IDs de questions.
4. [EVENT: START_AUDIT] : présente-toi puis pose la première question.
5. [EVENT: RESUME_AUDIT, ID: qNN] : reprends l'audit à la question qNN sans recommencer.
6. [SYSTEM_EVENT: SILENCE_10S, ERROR_COUNT: n] : relance l'utilisateur ; au-delà de 3, appelle technical_closure.
7. [EVENT: AUDIT_COMPLETED] ou [EVENT: TECHNICAL_CLOSURE] : remercie et invite sur memo5D.fr.

CONSIGNES DE DIALOGUE :
- Réponds oralement aux demandes de précision sans appeler record_answer.
- Reste sur les options prévues ; pour les choix multiples utilise multiValues.

LISTE DES QUESTIONS :
{question_lines}"""
