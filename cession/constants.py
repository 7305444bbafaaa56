"""
Constantes de la cession de créance : capture de signature, mise en page
du PDF et textes légaux.
"""

# === Capture de signature ===
# Dimensions du pad de signature en pixels CSS
CANVAS_WIDTH = 600
CANVAS_HEIGHT = 160
# Au-delà, le gain de netteté ne justifie pas le poids de l'image
MAX_DEVICE_PIXEL_RATIO = 2
STROKE_WIDTH = 2
INK_COLOR = "black"
JPEG_QUALITY = 80
SIGNATURE_CONTENT_TYPE = "image/jpeg"

# === Stockage ===
SIGNATURE_STORAGE_DIR = "signatures"
DOCUMENT_STORAGE_DIR = "cessions"

# === Mise en page PDF (A4, millimètres) ===
PAGE_SIZE = "A4"
PAGE_MARGIN_MM = 20
CONTENT_WIDTH_MM = 170
LOGO_BOX_MM = (30, 15)
SIGNATURE_BOX_MM = (60, 20)
STAMP_DIAMETER_MM = 38
LEGAL_FONT_SIZE_PT = 8

DOCUMENT_TITLE = "CESSION DE CRÉANCE"
CLIENT_SIGNATURE_LABEL = "Signature du client"
REPAIRER_SIGNATURE_LABEL = "Signature du carrossier"
DEBTOR_BLOCK_TITLE = "DÉBITEUR CÉDÉ :"
CEDANT_BLOCK_TITLE = "CÉDANT :"

# (texte, est_un_titre)
LEGAL_PARAGRAPHS = [
    ("Mentions légales complémentaires :", True),
    (
        "La présente cession de créance est régie par les articles 1321 à 1326 du Code civil. "
        "Elle transfère au réparateur automobile (ci-après désigné « le cédant ») l'intégralité "
        "de la créance détenue à l'encontre de l’assureur ou du client (ci-après désigné « le "
        "débiteur cédé »), au titre des réparations réalisées sur le véhicule mentionné ci-dessus.",
        False,
    ),
    (
        "Conformément à l’article L.211-5 du Code des assurances, le client dispose du droit de "
        "choisir librement le réparateur de son véhicule. Aucun assureur ne peut imposer un "
        "professionnel agréé.",
        False,
    ),
    (
        "En vertu de l’article L.121-12 du Code des assurances, la subrogation de l’assureur "
        "n’exclut pas la cession de créance au bénéfice du réparateur. Cette dernière permet à "
        "l’artisan carrossier d’être réglé directement pour les prestations réalisées.",
        False,
    ),
    (
        "Le client reconnaît que la créance cédée est certaine, liquide et exigible. Il accepte "
        "que le paiement soit effectué exclusivement entre les mains du cessionnaire.",
        False,
    ),
    (
        "Les travaux réalisés sont conformes aux normes professionnelles en vigueur, notamment "
        "aux dispositions des articles R.321-1 à R.321-16 du Code de la route concernant la "
        "sécurité des réparations automobiles.",
        False,
    ),
    (
        "La présente cession devient opposable à l’assureur dès sa signature ou dès sa "
        "notification par tout moyen conférant date certaine, conformément à l’article 1324 du "
        "Code civil. Elle emporte transfert de tous les droits accessoires (intérêts, pénalités, "
        "frais de recouvrement éventuels…).",
        False,
    ),
    ("Garantie du cédant :", True),
    (
        "Le réparateur certifie que la créance n’a fait l’objet d’aucune cession préalable, "
        "qu’aucun litige n’est en cours, et que les prestations ont été effectuées conformément "
        "au devis validé.",
        False,
    ),
    ("Clause de non-recours :", True),
    (
        "Le débiteur renonce à tout recours concernant la somme mentionnée dans cet acte. Sa "
        "signature vaut accord irrévocable et reconnaissance de dette, en application de "
        "l’article 1367 du Code civil relatif à la validité des signatures électroniques.",
        False,
    ),
]

FOOTER_LEGAL_NOTICE = (
    "La présente cession de créance est régie par les articles 1321 à 1326 du Code civil. "
    "Les signatures électroniques engagent les parties conformément à l'article 1367 du "
    "Code civil."
)

# Affiché sur la page de signature publique
SIGNING_PAGE_LEGAL_NOTE = (
    "Les signatures électroniques ci-dessus ont la même valeur juridique qu'une signature "
    "manuscrite, conformément à l'article 1367 du Code civil."
)
