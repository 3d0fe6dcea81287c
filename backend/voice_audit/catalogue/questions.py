from __future__ import annotations

from voice_audit.catalogue.models import Catalogue, QuestionKind, QuestionSchema, Stage

SOURCE_TAG = "Form-AMAI-GAIS-251017"

OTHER = "Autre"

STAGES = (
    Stage(label="Maturité IA, Stratégie...", max_index=4),
    Stage(label="Votre rôle...", max_index=7),
    Stage(label="Votre entreprise...", max_index=15),
    Stage(label="Objectifs, Défis...", max_index=18),
    Stage(label="Finalisation de l'Audit…", max_index=20),
)

QUESTIONS = (
    QuestionSchema(
        id="q01",
        label="Comment décririez-vous la stratégie IA actuelle de votre entreprise ? Votre stratégie actuelle est-elle en phase d'exploration, plutôt en cours de mise en oeuvre ou entièrement intégrée et déployée ?",
        kind=QuestionKind.SELECT,
        key="Maturité – Stratégie",
        options=(
            "Pas de stratégie définie nous explorons simplement.",
            "Nous avons une stratégie de base pour des projets spécifiques mais non étendue à toute l'entreprise",
            "Nous avons une stratégie IA claire à l'échelle de l'entreprise en cours d'implémentation.",
            "Notre stratégie IA est entièrement intégrée à notre stratégie commerciale et stimule l'innovation.",
        ),
    ),
    QuestionSchema(
        id="q02",
        label="Comment décririez-vous l'état de l'infrastructure des données de votre entreprise ? Vos données sont plutôt bien structurées ou encore dispersées et difficilement exploitables ?",
        kind=QuestionKind.SELECT,
        key="Maturité – Données-Infrastructure",
        options=(
            "Les données sont cloisonnées et inaccessibles",
            "Nous commençons à centraliser les données mais c'est un travail en cours",
            "Nous disposons d'une plateforme de données centralisée et bien gérée",
            "Nos données sont un atout stratégique - disponibles pour modèles IA - gouvernance solide",
        ),
    ),
    QuestionSchema(
        id="q03",
        label="Comment évaluez-vous les compétences en IA, Numérique ou digital au sein de vos équipes ?",
        kind=QuestionKind.SELECT,
        key="Maturité – Compétences",
        options=(
            "Très faibles. Nous avons peu ou pas d'expertise en interne.",
            "Basiques. Quelques membres de l'équipe ont des connaissances mais ce n'est pas généralisé.",
            "Modérées. Nous avons des équipes ou individus dédiés avec de solides compétences IA-Numérique",
            "Élevées. Expertise en IA-Numérique répandue et encouragée activement - culture d'apprentissage",
        ),
    ),
    QuestionSchema(
        id="q04",
        label="Quelle est l'approche de l'entreprise pour adopter de nouvelles technologies comme l'IA ? Vous avez une approche plutôt attentiste, de test à petite échelle ou très proactive ?",
        kind=QuestionKind.SELECT,
        key="Maturité – Adoption techno",
        options=(
            "Nous sommes très averses au risque et lents à adopter les nouvelles technologies.",
            "Nous expérimentons les nouvelles technologies à petite échelle et de manière informelle.",
            "Nous avons un processus formel pour piloter et adopter les nouvelles technologies.",
            "Notre R&D est très active en technologies de pointe. Objectif: obtenir un avantage concurrentiel",
        ),
    ),
    QuestionSchema(
        id="q05",
        label="Comment les projets d'IA sont-ils gouvernés et priorisés dans votre organisation ?",
        kind=QuestionKind.SELECT,
        key="Maturité – Gouvernance",
        options=(
            "Il n'y a pas de processus formel de gouvernance ou de priorisation.",
            "Les projets sont menés par des départements individuels avec peu de supervision centrale.",
            "Nous avons un comité interfonctionnel qui examine et priorise les initiatives d'IA.",
            "Nous avons une gouvernance IA solide intégrant ROI mesurable éthique et stratégie",
        ),
    ),
    QuestionSchema(
        id="q06",
        label="Quelle est votre position dans l'entreprise ?",
        kind=QuestionKind.SELECT,
        key="Statut Répondant - Position",
        options=(
            "Dirigeant / cadre dirigeant / visionnaire décisionnaire",
            "Responsable opérationnel (cadre dirigeant opérationnel)",
            "Collaborateur / expert technique",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Statut Répondant – Autre",
    ),
    QuestionSchema(
        id="q07",
        label="Dans quel service ou département travaillez-vous ?",
        kind=QuestionKind.SELECT,
        key="Service-dépt Rep",
        options=(
            "Direction Générale",
            "Direction Financière / Comptable",
            "Direction Commerciale / Ventes",
            "Direction Marketing / Communication",
            "Direction Produit / Innovation",
            "Direction des Opérations / Logistique",
            "Direction des Ressources Humaines",
            "Direction Informatique / Systèmes d'Information",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Service-dépt Rep Autre",
    ),
    QuestionSchema(
        id="q08",
        label="Quel est l'intitulé exact de votre poste ?",
        kind=QuestionKind.SELECT,
        key="Intitulé poste Rep",
        options=(
            "Président / CEO / Directeur Général",
            "Directeur Financier (CFO)",
            "Directeur des Opérations (COO)",
            "Directeur Technique / CTO / DSI",
            "Directeur Marketing / CMO",
            "Directeur Commercial / Responsable des Ventes",
            "Responsable Produit / Chef de Produit",
            "Responsable Logistique / Supply Chain",
            "Responsable des Ressources Humaines",
            "Responsable ADV / Administration des Ventes",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Intitulé poste Rep-Autre",
    ),
    QuestionSchema(
        id="q09",
        label="Quel est le secteur d'activité principal de votre entreprise ?",
        kind=QuestionKind.SELECT,
        key="Secteur activité",
        options=(
            "Agriculture-sylviculture-pêche",
            "Industries extractives",
            "Industrie manufacturière",
            "Production-distribution énergie",
            "Production-distribution eau-gestion déchets",
            "Construction",
            "Commerce réparation automobiles-moto",
            "Transports-entreposage",
            "Hébergement-restauration",
            "Information-communication",
            "Finance-banque-assurance",
            "Immobilier",
            "Science-technique",
            "Service administratif-soutien",
            "Administration publique",
            "Enseignement",
            "Santé-action sociale",
            "Art-spectacle-activité_récréative",
            "Autres activités de services",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Secteur activité-Autre",
    ),
    QuestionSchema(
        id="q10",
        label="Quel est le sous-secteur niche principal ?",
        kind=QuestionKind.SELECT,
        key="Sous-secteur niche",
        options=(
            "Agro-alimentaire",
            "Santé/Biotech",
            "Industrie Automobile",
            "Conseil Stratégique",
            "Aéronautique",
            "IT/SaaS",
            "Finance/Assurance",
            "Énergie",
            "Éducation",
            "Retail / E-commerce",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Sous-secteur-Autre",
    ),
    QuestionSchema(
        id="q11",
        label="Quel est l'effectif total de votre entreprise ?",
        kind=QuestionKind.SELECT,
        key="Nbr employés",
        options=("<50", "50-250", "250-500", "500-1000", ">1000"),
    ),
    QuestionSchema(
        id="q12",
        label="Quelle est votre tranche de chiffre d'affaires ?",
        kind=QuestionKind.SELECT,
        key="CA",
        options=("<1 M€", "1-5 M€", "5-20 M€", "20-50 M€", ">50 M€"),
    ),
    QuestionSchema(
        id="q13",
        label="Quel type d'offres proposez-vous ? Plutôt des Produits physiques, des Services ou un mix des deux ?",
        kind=QuestionKind.SELECT,
        key="Type offres",
        options=("Produits physiques", "Services", "Produits + services", "Solutions sur-mesure / projets", OTHER),
        other_label=OTHER,
        other_key="Type offres-Autre",
    ),
    QuestionSchema(
        id="q14",
        label="Pour vos offres, ciblez-vous plutôt le BtoB, les entreprises ou le BtoC, les personnes privées, ou les deux ?",
        kind=QuestionKind.SELECT,
        key="BtoB-BtoC",
        options=("BtoB", "BtoC", "BtoB + BtoC"),
    ),
    QuestionSchema(
        id="q15",
        label="Combien d'entités sont concernées par cet audit ?",
        kind=QuestionKind.SELECT,
        key="Nbr Entités",
        options=(
            "1: entité principale",
            "2: entité principale + 1 filiale",
            "3: entité principale + 2 filiales",
            "4 ou plus",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Nbr Entités-Autre",
    ),
    QuestionSchema(
        id="q16",
        label="Sur quel marché géographique intervenez-vous ?",
        kind=QuestionKind.SELECT,
        key="Marché desservi",
        options=("Local / Régional", "National", "International", OTHER),
        other_label=OTHER,
        other_key="Marché desservi – Autre",
    ),
    QuestionSchema(
        id="q17",
        label="Quels sont vos objectifs principaux en matière d'IA et numérique ?",
        kind=QuestionKind.MULTI_SELECT,
        key="Objectifs IA-Digital",
        max_items=7,
        options=(
            "Concevoir une application interne d’optimisation du cycle de vente.",
            "Mettre en place un tableau de bord automatisé pour piloter la performance.",
            "Créer un assistant IA pour automatiser les tâches administratives.",
            "Développer une solution de recommandation personnalisée (produits ou contenus).",
            "Automatiser la détection d’anomalies dans les données ou la production.",
            "Optimiser la maintenance prédictive des équipements.",
            "Assistance à la stratégie de l'entreprise : commercial",
            "Assistance à la stratégie de l'entreprise : innovation",
            "Assistance à la stratégie de l'entreprise : finance-fiscalité",
            "Assistance à la stratégie de l'entreprise : management",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Objectifs IA-Digital-Autre",
    ),
    QuestionSchema(
        id="q18",
        label="Quels sont vos principaux défis ?",
        kind=QuestionKind.MULTI_SELECT,
        key="Défis prioritaires (max 3)",
        max_items=3,
        options=(
            "Définir ou actualiser la stratégie IA et Data",
            "Automatiser des processus internes / améliorer la productivité",
            "Améliorer la croissance commerciale / différenciation concurrentielle",
            "Mieux exploiter / valoriser les données (data management)",
            "Optimiser la marge et les coûts",
            "Renforcer la satisfaction client et l’expérience utilisateur",
            "Gouvernance et conformité (RGPD AI Act éthique)",
            "Recruter et développer les compétences IA/numériques",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Défis – Autre",
    ),
    QuestionSchema(
        id="q19",
        label="Quelles sont vos attentes vis-à-vis de l'IA et du Digital ?",
        kind=QuestionKind.MULTI_SELECT,
        key="Attentes IA-Digital",
        max_items=5,
        options=(
            "Obtenir une proposition de valeur actualisée grâce à l’IA",
            "Bénéficier d’une approche stratégique et d’une feuille de route",
            "Mettre en place une approche opérationnelle (automatisation process)",
            "Gagner en productivité / gagner du temps",
            "Restaurer ou augmenter les marges",
            OTHER,
        ),
        other_label=OTHER,
        other_key="Attentes IA-Digital-Autre",
    ),
    QuestionSchema(
        id="q20",
        label="Quel est votre e-mail professionnel ?",
        kind=QuestionKind.STRING,
        key="e-mail répondant",
    ),
    QuestionSchema(
        id="q21",
        label="Acceptez-vous que Memo5D conserve ces données conformément aux CGU et à la politique RGPD ?",
        kind=QuestionKind.BOOL,
        key="Consentement RGPD (Oui/Non)",
    ),
)

EMAIL_KEY = "e-mail répondant"

DEFAULT_CATALOGUE = Catalogue(questions=QUESTIONS, source_tag=SOURCE_TAG, stages=STAGES, email_key=EMAIL_KEY)
