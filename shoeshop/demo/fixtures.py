"""Sample catalog used by the seeding operation.

Three shoes matching the GLB assets shipped in the storefront's public folder:
- Red Runner: running, default scale
- Blue Sprinter: running, rendered at 0.125 scale
- Green Trail: hiking, default scale
"""

from ..models.schemas import Product

SAMPLE_PRODUCTS: list[Product] = [
    Product(
        id="1",
        name="Red Runner",
        price=129.99,
        model_path="/shoe1.glb",
        color="red",
        available_colors=["red", "blue", "black"],
        category="running",
        description=(
            "Premium comfort with stylish design. Made with the highest quality "
            "materials for durability and performance. Features advanced cushioning "
            "for all-day comfort."
        ),
        features=[
            "Breathable mesh upper",
            "Responsive cushioning",
            "Durable rubber outsole",
            "Reflective details for visibility",
            "Antimicrobial lining",
        ],
        rating=4.8,
        reviews=124,
        in_stock=True,
        date="2025-01-15",
    ),
    Product(
        id="2",
        name="Blue Sprinter",
        price=149.99,
        model_path="/shoe2.glb",
        color="blue",
        available_colors=["blue", "black", "green"],
        category="running",
        description=(
            "Lightweight performance for every step. Designed for serious runners "
            "who demand the best in comfort and responsiveness."
        ),
        features=[
            "Ultralight knit construction",
            "Carbon fiber plate for energy return",
            "Heel stabilizer technology",
            "High-traction outsole pattern",
            "Sweat-wicking inner lining",
        ],
        rating=4.9,
        reviews=86,
        in_stock=True,
        date="2025-02-10",
        shoe_scale=0.125,
    ),
    Product(
        id="3",
        name="Green Trail",
        price=169.99,
        model_path="/shoe3.glb",
        color="green",
        available_colors=["green", "black", "red"],
        category="hiking",
        description="Durable design for all terrain adventures. Waterproof and rugged.",
        features=[
            "Waterproof membrane",
            "Aggressive tread pattern",
            "Ankle support system",
            "Reinforced toe cap",
            "Quick-lace system",
        ],
        rating=4.7,
        reviews=59,
        in_stock=True,
        date="2025-03-01",
    ),
]
