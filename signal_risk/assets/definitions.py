"""
Static definitions of the three monitored assets.

Starting risk scores are the baseline the catalog is seeded with; analysis
cycles move them from there.
"""

from signal_risk.assets.schemas import (
    Asset,
    CriticalNode,
    MonitoringConfig,
    RelatedCompany,
    SupplyChain,
    SupplyConsumer,
    SupplyProducer,
)

LITHIUM = Asset(
    id="lithium",
    name="Lithium",
    symbol="Li",
    type="commodity",
    category="metals",
    description=(
        "Critical battery metal for electric vehicles and energy storage. "
        "Chile and Australia dominate global supply."
    ),
    current_risk_score=4.2,
    monitoring=MonitoringConfig(
        regions=["Chile", "Australia", "Argentina", "China"],
        keywords=["strike", "mining", "production", "closure", "disruption", "protest", "regulation"],
        related_companies=[
            RelatedCompany(name="SQM", symbol="SQM", exposure=95, relationship="producer"),
            RelatedCompany(name="Albemarle Corporation", symbol="ALB", exposure=90, relationship="producer"),
            RelatedCompany(name="Tesla", symbol="TSLA", exposure=75, relationship="consumer"),
            RelatedCompany(name="Panasonic", symbol="PCRFY", exposure=70, relationship="consumer"),
            RelatedCompany(name="Pilbara Minerals", symbol="PLS.AX", exposure=85, relationship="competitor"),
            RelatedCompany(name="Ganfeng Lithium", symbol="1772.HK", exposure=80, relationship="producer"),
        ],
        sources=["El Mercurio", "Bloomberg", "Mining.com", "Reuters", "Financial Times"],
    ),
    supply_chain=SupplyChain(
        top_producers=[
            SupplyProducer(name="Salar de Atacama (SQM)", country="Chile", global_share=22, coordinates=(-23.698, -68.265)),
            SupplyProducer(name="Greenbushes Mine (Albemarle/Tianqi)", country="Australia", global_share=18, coordinates=(-33.8568, 116.0623)),
            SupplyProducer(name="Mt. Cattlin (Albemarle)", country="Australia", global_share=8, coordinates=(-32.5789, 121.9012)),
            SupplyProducer(name="Salar de Olaroz", country="Argentina", global_share=5, coordinates=(-23.9736, -66.4597)),
        ],
        top_consumers=[
            SupplyConsumer(name="China", country="China", demand=45),
            SupplyConsumer(name="United States", country="USA", demand=18),
            SupplyConsumer(name="South Korea", country="South Korea", demand=12),
        ],
        critical_nodes=[
            CriticalNode(name="Salar de Atacama", type="mine", location="Atacama Desert, Chile", importance=10),
            CriticalNode(name="Port of Antofagasta", type="port", location="Antofagasta, Chile", importance=8),
            CriticalNode(name="Greenbushes Processing Plant", type="processing_plant", location="Western Australia", importance=9),
        ],
    ),
)

OIL = Asset(
    id="oil",
    name="Crude Oil",
    symbol="CL",
    type="commodity",
    category="energy",
    description=(
        "The world's most traded commodity. Middle East tensions and OPEC "
        "decisions drive volatility."
    ),
    current_risk_score=5.8,
    monitoring=MonitoringConfig(
        regions=["Saudi Arabia", "Iran", "Iraq", "UAE", "Russia", "USA", "Venezuela"],
        keywords=["opec", "production cut", "sanctions", "strait of hormuz", "pipeline", "conflict", "embargo"],
        related_companies=[
            RelatedCompany(name="Saudi Aramco", symbol="2222.SR", exposure=95, relationship="producer"),
            RelatedCompany(name="ExxonMobil", symbol="XOM", exposure=90, relationship="producer"),
            RelatedCompany(name="BP", symbol="BP", exposure=85, relationship="producer"),
            RelatedCompany(name="Chevron", symbol="CVX", exposure=88, relationship="producer"),
        ],
        sources=["Reuters", "Bloomberg Energy", "OPEC News", "Middle East Eye", "Platts"],
    ),
    supply_chain=SupplyChain(
        top_producers=[
            SupplyProducer(name="Ghawar Field", country="Saudi Arabia", global_share=6, coordinates=(25.4167, 49.9167)),
            SupplyProducer(name="Permian Basin", country="USA", global_share=12, coordinates=(31.8457, -102.3676)),
            SupplyProducer(name="West Siberian Basin", country="Russia", global_share=11, coordinates=(61.524, 72.156)),
        ],
        top_consumers=[
            SupplyConsumer(name="United States", country="USA", demand=20),
            SupplyConsumer(name="China", country="China", demand=16),
            SupplyConsumer(name="India", country="India", demand=5),
        ],
        critical_nodes=[
            CriticalNode(name="Strait of Hormuz", type="port", location="Persian Gulf", importance=10),
            CriticalNode(name="Suez Canal", type="port", location="Egypt", importance=9),
            CriticalNode(name="Ras Tanura Terminal", type="port", location="Saudi Arabia", importance=9),
        ],
    ),
)

SEMICONDUCTORS = Asset(
    id="semiconductors",
    name="Semiconductors",
    symbol="SOXX",
    type="stock",
    category="technology",
    description=(
        "Critical technology components. Taiwan and South Korea dominate "
        "production; geopolitical tension is the main supply chain risk."
    ),
    current_risk_score=6.5,
    monitoring=MonitoringConfig(
        regions=["Taiwan", "South Korea", "China", "USA", "Japan"],
        keywords=["tsmc", "china taiwan", "sanctions", "chip shortage", "export controls", "fab", "manufacturing"],
        related_companies=[
            RelatedCompany(name="Taiwan Semiconductor (TSMC)", symbol="TSM", exposure=95, relationship="producer"),
            RelatedCompany(name="NVIDIA", symbol="NVDA", exposure=85, relationship="consumer"),
            RelatedCompany(name="Apple", symbol="AAPL", exposure=90, relationship="consumer"),
            RelatedCompany(name="Samsung Electronics", symbol="005930.KS", exposure=92, relationship="producer"),
            RelatedCompany(name="Intel", symbol="INTC", exposure=80, relationship="producer"),
            RelatedCompany(name="AMD", symbol="AMD", exposure=88, relationship="consumer"),
        ],
        sources=["DigiTimes", "EE Times", "Nikkei Asia", "Taiwan News", "The Verge"],
    ),
    supply_chain=SupplyChain(
        top_producers=[
            SupplyProducer(name="TSMC Fab 18", country="Taiwan", global_share=28, coordinates=(24.7805, 120.996)),
            SupplyProducer(name="Samsung Giheung Campus", country="South Korea", global_share=18, coordinates=(37.2983, 127.0527)),
            SupplyProducer(name="Intel Fab 42", country="USA", global_share=8, coordinates=(33.3833, -111.8833)),
        ],
        top_consumers=[
            SupplyConsumer(name="United States", country="USA", demand=30),
            SupplyConsumer(name="China", country="China", demand=35),
            SupplyConsumer(name="European Union", country="EU", demand=15),
        ],
        critical_nodes=[
            CriticalNode(name="TSMC Headquarters", type="processing_plant", location="Hsinchu, Taiwan", importance=10),
            CriticalNode(name="Port of Kaohsiung", type="port", location="Taiwan", importance=9),
            CriticalNode(name="Incheon Airport", type="port", location="South Korea", importance=8),
        ],
    ),
)

DEFAULT_ASSETS: tuple[Asset, ...] = (LITHIUM, OIL, SEMICONDUCTORS)
