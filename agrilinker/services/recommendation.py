"""Season-based crop suggestions from a built-in Bangladesh crop calendar."""
from agrilinker.errors import ValidationError
from agrilinker.validators import clean_text, positive_number

MONTHS = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]

CROP_TYPES = ['all', 'cereal', 'pulse', 'oilseed', 'vegetable', 'fruit', 'cash-crop']

# yieldPerAcre in kg, marketPrice in Taka/kg, productionCost in Taka per acre
CROP_CALENDAR = [
    {'name': 'Boro Rice', 'type': 'cereal', 'season': 'rabi',
     'sowingMonths': ['December', 'January', 'February'], 'harvestMonths': ['April', 'May'],
     'duration': 150, 'yieldPerAcre': 2400, 'marketPrice': 30, 'productionCost': 45000},
    {'name': 'Aman Rice', 'type': 'cereal', 'season': 'kharif-2',
     'sowingMonths': ['June', 'July', 'August'], 'harvestMonths': ['November', 'December'],
     'duration': 140, 'yieldPerAcre': 1900, 'marketPrice': 28, 'productionCost': 32000},
    {'name': 'Aus Rice', 'type': 'cereal', 'season': 'kharif-1',
     'sowingMonths': ['March', 'April'], 'harvestMonths': ['July', 'August'],
     'duration': 110, 'yieldPerAcre': 1300, 'marketPrice': 28, 'productionCost': 26000},
    {'name': 'Wheat', 'type': 'cereal', 'season': 'rabi',
     'sowingMonths': ['November', 'December'], 'harvestMonths': ['March'],
     'duration': 110, 'yieldPerAcre': 1400, 'marketPrice': 35, 'productionCost': 28000},
    {'name': 'Maize', 'type': 'cereal', 'season': 'rabi',
     'sowingMonths': ['November', 'December', 'January'], 'harvestMonths': ['April', 'May'],
     'duration': 140, 'yieldPerAcre': 3200, 'marketPrice': 24, 'productionCost': 40000},
    {'name': 'Lentil', 'type': 'pulse', 'season': 'rabi',
     'sowingMonths': ['October', 'November'], 'harvestMonths': ['February', 'March'],
     'duration': 110, 'yieldPerAcre': 500, 'marketPrice': 95, 'productionCost': 18000},
    {'name': 'Mung Bean', 'type': 'pulse', 'season': 'kharif-1',
     'sowingMonths': ['February', 'March', 'April'], 'harvestMonths': ['May', 'June'],
     'duration': 70, 'yieldPerAcre': 450, 'marketPrice': 110, 'productionCost': 15000},
    {'name': 'Mustard', 'type': 'oilseed', 'season': 'rabi',
     'sowingMonths': ['October', 'November'], 'harvestMonths': ['January', 'February'],
     'duration': 90, 'yieldPerAcre': 550, 'marketPrice': 85, 'productionCost': 17000},
    {'name': 'Sesame', 'type': 'oilseed', 'season': 'kharif-1',
     'sowingMonths': ['February', 'March'], 'harvestMonths': ['May', 'June'],
     'duration': 95, 'yieldPerAcre': 400, 'marketPrice': 120, 'productionCost': 14000},
    {'name': 'Potato', 'type': 'vegetable', 'season': 'rabi',
     'sowingMonths': ['November', 'December'], 'harvestMonths': ['February', 'March'],
     'duration': 95, 'yieldPerAcre': 8500, 'marketPrice': 18, 'productionCost': 85000},
    {'name': 'Tomato', 'type': 'vegetable', 'season': 'rabi',
     'sowingMonths': ['September', 'October', 'November'], 'harvestMonths': ['January', 'February', 'March'],
     'duration': 120, 'yieldPerAcre': 9000, 'marketPrice': 25, 'productionCost': 90000},
    {'name': 'Brinjal', 'type': 'vegetable', 'season': 'kharif-1',
     'sowingMonths': ['February', 'March', 'April', 'July', 'August'], 'harvestMonths': ['May', 'June', 'October', 'November'],
     'duration': 120, 'yieldPerAcre': 7000, 'marketPrice': 30, 'productionCost': 70000},
    {'name': 'Onion', 'type': 'vegetable', 'season': 'rabi',
     'sowingMonths': ['October', 'November', 'December'], 'harvestMonths': ['February', 'March', 'April'],
     'duration': 120, 'yieldPerAcre': 4000, 'marketPrice': 45, 'productionCost': 75000},
    {'name': 'Green Chili', 'type': 'vegetable', 'season': 'kharif-1',
     'sowingMonths': ['March', 'April', 'September', 'October'], 'harvestMonths': ['June', 'July', 'December', 'January'],
     'duration': 120, 'yieldPerAcre': 2500, 'marketPrice': 60, 'productionCost': 60000},
    {'name': 'Watermelon', 'type': 'fruit', 'season': 'kharif-1',
     'sowingMonths': ['January', 'February', 'March'], 'harvestMonths': ['April', 'May'],
     'duration': 90, 'yieldPerAcre': 10000, 'marketPrice': 20, 'productionCost': 80000},
    {'name': 'Banana', 'type': 'fruit', 'season': 'year-round',
     'sowingMonths': ['February', 'March', 'September', 'October'], 'harvestMonths': ['November', 'December', 'January'],
     'duration': 330, 'yieldPerAcre': 12000, 'marketPrice': 22, 'productionCost': 110000},
    {'name': 'Jute', 'type': 'cash-crop', 'season': 'kharif-1',
     'sowingMonths': ['March', 'April', 'May'], 'harvestMonths': ['July', 'August'],
     'duration': 120, 'yieldPerAcre': 1000, 'marketPrice': 60, 'productionCost': 30000},
    {'name': 'Sugarcane', 'type': 'cash-crop', 'season': 'year-round',
     'sowingMonths': ['October', 'November', 'February', 'March'], 'harvestMonths': ['November', 'December', 'January'],
     'duration': 330, 'yieldPerAcre': 20000, 'marketPrice': 5, 'productionCost': 65000},
]


def _normalize_month(month):
    month = clean_text(month, 'month').lower()
    for name in MONTHS:
        if month in (name.lower(), name[:3].lower()):
            return name
    raise ValidationError('Please choose a valid sowing month')


def recommend_crops(month, crop_type='all', land_size=1, budget=None):
    """Rank crops that can be sown in `month` by return on investment.

    Costs and yields scale with `land_size` (acres). Crops whose total
    production cost exceeds `budget` are left out.
    """
    month = _normalize_month(month)
    crop_type = (clean_text(crop_type, 'cropType') or 'all').lower()
    if crop_type not in CROP_TYPES:
        raise ValidationError(f'Unknown crop type: {crop_type}')
    land_size = positive_number(land_size or 1, 'landSize')
    budget = positive_number(budget, 'budget') if budget not in (None, '') else None

    recommendations = []
    for crop in CROP_CALENDAR:
        if month not in crop['sowingMonths']:
            continue
        if crop_type != 'all' and crop['type'] != crop_type:
            continue

        production_cost = round(crop['productionCost'] * land_size)
        if budget is not None and production_cost > budget:
            continue

        total_yield = round(crop['yieldPerAcre'] * land_size)
        revenue = total_yield * crop['marketPrice']
        net_profit = revenue - production_cost
        recommendations.append({
            **crop,
            'productionCost': production_cost,
            'totalYield': total_yield,
            'expectedRevenue': revenue,
            'netProfit': net_profit,
            'roi': round(net_profit / production_cost * 100) if production_cost else 0,
        })

    recommendations.sort(key=lambda crop: crop['roi'], reverse=True)

    analysis = {}
    if recommendations:
        analysis = {
            'mostProfitable': recommendations[0],
            'highestYield': max(recommendations, key=lambda crop: crop['yieldPerAcre']),
            'lowestInvestment': min(recommendations, key=lambda crop: crop['productionCost']),
        }

    return {
        'success': True,
        'month': month,
        'landSize': land_size,
        'suitableCropsCount': len(recommendations),
        'recommendations': recommendations,
        'analysis': analysis,
    }
