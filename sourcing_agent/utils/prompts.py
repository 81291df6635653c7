ALIBABA_GOAL_TEMPLATE = """Search for "{query}" on Alibaba.com and browse the search results.

Your task:
1. Find the search box on the page
2. Type and search for: "{query}"
3. Wait for search results to load
4. Scroll down once to see more products
5. Once you see product listings with prices and supplier names visible, say "DONE - search results are visible"

Focus on making sure you can see:
- Product listings with images
- Prices and price ranges
- Supplier names
- MOQ (minimum order quantity) information

Do NOT click on individual products. Just make sure the search results are visible."""


ALIBABA_EXTRACTION_TEMPLATE = """Extract product and supplier information from this Alibaba search results page.

For each product listing visible, extract:
- supplierName: The company/supplier name
- productName: The product title/name
- productUrl: Link to the product page, if visible in the page content
- imageUrl: Product image URL, if visible in the page content
- price: The price (number only, use lower value if range)
- currency: "USD"
- moq: Minimum order quantity (number only)
- leadTimeDays: Lead time in days, if shown (number only)
- location: Supplier location
- certifications: Any certifications shown (array)
- description: Brief product description

Return JSON: {{"products": [{{...}}, {{...}}]}}
Extract up to {max_results} products. If no products visible, return {{"products": []}}."""


THOMASNET_GOAL_TEMPLATE = """Search for "{query}" suppliers on ThomasNet.com.

Your task:
1. Find the search box on the page
2. Type and search for: "{query}"
3. Wait for search results to load
4. Scroll down once to see more suppliers
5. Once you see supplier listings visible, say "DONE - supplier results are visible"

Focus on making sure you can see:
- Company/supplier names
- Location information
- Product categories or capabilities

Do NOT click on individual supplier profiles. Just make sure the search results are visible."""


THOMASNET_EXTRACTION_TEMPLATE = """Extract supplier/company information from this ThomasNet search results page.

For each supplier listing visible, extract:
- supplierName: The company name
- productName: Their main product category or capability
- productUrl: Link to the supplier profile, if visible in the page content
- location: Company location (city, state)
- certifications: Any certifications shown (array)
- description: Brief company description

Return JSON: {{"suppliers": [{{...}}, {{...}}]}}
Extract up to {max_results} suppliers. If no suppliers visible, return {{"suppliers": []}}."""


EXTRACTION_PROMPT_TEMPLATE = """You are analyzing a webpage screenshot and extracting structured data.

Current URL: {url}

{instructions}
{markup_section}
Analyze the screenshot and extract the requested information. Return valid JSON only."""


def build_extraction_prompt(url: str, instructions: str, markup: str = "") -> str:
    markup_section = ""
    if markup:
        markup_section = f"\nPAGE CONTENT (for links and text the screenshot may cut off):\n{markup}\n"
    return EXTRACTION_PROMPT_TEMPLATE.format(
        url=url,
        instructions=instructions.strip(),
        markup_section=markup_section,
    )
