"""
Serverless entrypoint: the analysis API behind AWS Lambda / API Gateway.
Lifespan is off; the app has no startup state.
"""
from mangum import Mangum
from api.main import app

handler = Mangum(app, lifespan="off")
