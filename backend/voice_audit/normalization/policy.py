"""Keyword policy used by the deterministic closure.

Keyword sets are tunable: they are matched on accent-folded, lowercased text
at word starts. Bucket order follows option order.
"""
from __future__ import annotations

from voice_audit.normalization.text import compile_keywords

# Maturity-scale questions: one keyword bucket per option, lowest maturity first.
MATURITY_BUCKETS: dict[str, tuple[tuple[str, ...], ...]] = {
    "q01": (
        ("pas de strategie", "aucune strategie", "pas encore de strategie", "on explore", "exploration", "rien de defini"),
        ("strategie de base", "projets specifiques", "quelques projets", "ponctuel", "au cas par cas", "poc", "test"),
        ("en cours", "mise en oeuvre", "implementation", "deploiement", "a l echelle", "strategie claire", "pilotage"),
        ("entierement integre", "integree", "strategie commerciale", "stimule l innovation", "coeur de", "deploye partout"),
    ),
    "q02": (
        ("cloisonne", "inaccessible", "disperse", "silo", "eparpille", "difficilement exploitable", "excel"),
        ("commence a centraliser", "en cours", "travail en cours", "on centralise", "consolid", "partiellement"),
        ("centralise", "plateforme", "bien gere", "dwh", "data warehouse", "data lake", "entrepot", "structure"),
        ("atout strategique", "gouvernance solide", "disponible pour", "modeles ia", "data driven", "valorise"),
    ),
    "q03": (
        ("tres faible", "peu ou pas", "aucune expertise", "pas d expertise", "personne", "aucune competence"),
        ("basique", "quelques", "pas generalise", "notions", "debutant", "autodidacte"),
        ("equipe", "dedie", "solides competences", "expert", "ingenieur", "developpeur", "referent", "data scientist"),
        ("elevee", "repandue", "culture d apprentissage", "tout le monde", "generalise", "formation continue"),
    ),
    "q04": (
        ("averse", "lent", "attentiste", "prudent", "frileux", "on attend", "pas du tout"),
        ("experiment", "test", "petite echelle", "informel", "poc", "essai", "un peu"),
        ("processus formel", "piloter", "pilotage", "pilote", "comite", "cadre", "methodique"),
        ("r d", "recherche", "pointe", "avantage concurrentiel", "proactif", "pionnier", "avant garde"),
    ),
    "q05": (
        ("pas de processus", "aucun processus", "aucune gouvernance", "pas de gouvernance", "informel", "personne ne"),
        ("departement", "chaque service", "individuel", "peu de supervision", "en silo", "au cas par cas"),
        ("comite", "interfonctionnel", "transverse", "priorise", "arbitrage", "instance"),
        ("gouvernance ia solide", "roi", "ethique", "mesurable", "charte", "integrant"),
    ),
}

# Signals that the respondent already has something in place; these forbid the
# lowest maturity option.
MATURITY_SIGNALS = (
    "en cours", "mise en oeuvre", "pilotage", "poc", "test", "deploye partiellement", "deploiement",
    "structure", "consolide", "centralise", "plateforme", "dwh", "data lake",
    "equipe", "expert", "ingenieur", "developpeur", "r d", "referent", "dedie",
)

# Multi-select questions expected to carry rich free text: option index -> keywords.
MULTI_SELECT_KEYWORDS: dict[str, dict[int, tuple[str, ...]]] = {
    "q17": {
        0: ("cycle de vente", "prospect", "crm", "pipeline commercial"),
        1: ("tableau de bord", "dashboard", "reporting", "kpi", "indicateur"),
        2: ("assistant", "administrati", "chatbot", "secretariat", "taches repetitives"),
        3: ("recommand", "personnalis"),
        4: ("anomalie", "fraude", "detection", "controle qualite"),
        5: ("maintenance", "predicti", "panne", "equipement"),
        6: ("strategie commerciale", "commercial", "marketing"),
        7: ("innovation", "innover", "nouveaux produits"),
        8: ("financ", "fiscal", "tresorerie", "comptab"),
        9: ("management", "manager", "ressources humaines", "organisation"),
    },
    "q18": {
        0: ("strategie", "feuille de route", "roadmap"),
        1: ("automatis", "productivit", "processus internes"),
        2: ("croissance", "chiffre d affaires", "differenci", "concurren"),
        3: ("donnee", "data"),
        4: ("marge", "cout", "rentabilit", "economi"),
        5: ("satisfaction", "experience client", "experience utilisateur", "fidelis"),
        6: ("gouvernance", "conformit", "rgpd", "ai act", "ethique", "reglementa"),
        7: ("recrut", "competence", "formation", "former", "talent"),
    },
    "q19": {
        0: ("proposition de valeur", "valeur", "offre"),
        1: ("strategi", "feuille de route", "roadmap", "vision"),
        2: ("operationnel", "automatis", "process"),
        3: ("productivit", "gagner du temps", "gain de temps", "efficacit"),
        4: ("marge", "rentabilit", "reduire les couts"),
    },
}


def maturity_patterns(question_id: str):
    buckets = MATURITY_BUCKETS.get(question_id)
    if not buckets:
        return None
    return [compile_keywords(bucket) for bucket in buckets]


def multi_select_patterns(question_id: str):
    mapping = MULTI_SELECT_KEYWORDS.get(question_id)
    if not mapping:
        return None
    return {index: compile_keywords(keywords) for index, keywords in mapping.items()}


MATURITY_SIGNAL_PATTERNS = compile_keywords(MATURITY_SIGNALS)
