import json

from voice_audit.catalogue import Catalogue

SYSTEM_PROMPT = "Tu es un générateur JSON strict. Réponds uniquement par un objet JSON."

SEMANTIC_PRIORITY_RULES = """RÈGLE PRIORITAIRE — PRIORITÉ SÉMANTIQUE (Q01–Q05) :
- Ces questions mesurent une maturité. "Pas terminé" ne veut pas dire "inexistant".
- Si la réponse contient des indices d'existence ou de maturité, ne sélectionne JAMAIS l'option la plus basse.
Indices typiques :
- stratégie / déploiement : "en cours", "mise en œuvre", "pilotage", "POC", "test", "déployé partiellement"
- données : "structuré", "consolidé", "centralisé", "plateforme", "DWH", "data lake"
- compétences : "équipe", "experts", "ingénieurs", "développeurs", "R&D", "référent", "dédié"
Dans ce cas choisis au minimum le niveau 2, voire 3 si les indices sont forts.

EXEMPLES :
- "en cours de mise en œuvre" => Q01 ne peut pas être "pas de stratégie".
- "structurées, consolidées" => Q02 ne peut pas être "données cloisonnées et inaccessibles".
- "3 ingénieurs font de la R&D IA" => Q03 ne peut pas être "très faibles / peu ou pas d'expertise"."""


def build_normalization_prompt(catalogue: Catalogue, transcript: list[dict], raw_answers: dict) -> str:
    context = [question.context() for question in catalogue]
    return f"""Tu es un expert en normalisation de données de haute précision. Convertis le transcript d'un audit vocal et ses données brutes en un objet JSON strictement valide.

CONTEXTE :
Transcript : {json.dumps(transcript, ensure_ascii=False)}
Données brutes de l'agent : {json.dumps(raw_answers, ensure_ascii=False, default=str)}

RÈGLES DE MAPPING :
1. Si l'utilisateur a utilisé une périphrase (ex: "on teste un peu"), choisis l'option la plus proche sémantiquement dans la liste autorisée.
2. Pour chaque champ 'select' ou 'array', retourne la valeur EXACTE telle qu'elle apparaît dans les options.
3. Ne reformule jamais une option.
4. Utilise "Autre" uniquement si aucune option ne correspond ; remplis alors le champ associé (autreKey) avec la réponse libre.
5. Identifie le nom de l'utilisateur dans le transcript pour "'Nom soumission'".
6. Pour les types 'array', retourne un tableau de libellés exacts.
7. Pour les types 'bool', retourne true si l'utilisateur exprime son accord ('Oui', 'D'accord', 'J'accepte'), sinon false.

PROPRIÉTÉS ET OPTIONS AUTORISÉES :
{json.dumps(context, ensure_ascii=False, indent=2)}

{SEMANTIC_PRIORITY_RULES}

Retourne UNIQUEMENT le JSON final, sans formatage markdown."""
