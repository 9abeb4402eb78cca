import pandas as pd # type: ignore
from rapidfuzz import process, fuzz, utils as fuzz_utils # type: ignore


class HSNLookup:
    def __init__(self, csv_path: str):
        """Load HSN/SAC code table (CSV must have columns: hsn_code, Description, rate)."""
        self.df = pd.read_csv(csv_path, dtype=str)
        # normalize columns (case-insensitive)
        self.df.columns = [c.strip().lower() for c in self.df.columns]
        if "hsn" in self.df.columns and "hsn_code" not in self.df.columns:
            self.df.rename(columns={"hsn": "hsn_code"}, inplace=True)
        if "hsn_code" not in self.df.columns:
            raise ValueError("CSV must have an hsn_code column")
        if "description" not in self.df.columns:
            raise ValueError("CSV must have a Description column")
        if "rate" not in self.df.columns:
            raise ValueError("CSV must have a Rate column")
        self.df["hsn_code"] = self.df["hsn_code"].astype(str).str.strip()
        self.df["description"] = self.df["description"].fillna("").astype(str)
        self.df["rate"] = pd.to_numeric(self.df["rate"], errors="coerce").fillna(0)

    def __len__(self):
        return len(self.df)

    def suggest(self, description: str, limit: int = 1):
        """Suggest closest HSN codes for an item description."""
        if not description or not description.strip():
            return []
        choices = self.df['description'].tolist()
        matches = process.extract(description, choices, scorer=fuzz.WRatio,
                                  processor=fuzz_utils.default_process, limit=limit)
        results = []
        for match, score, idx in matches:
            row = self.df.iloc[idx]
            results.append({
                "hsn_code": row['hsn_code'],
                "description": row['description'],
                "rate": float(row['rate']),
                "score": score
            })
        return results

    def rate_for_code(self, hsn_code: str):
        """GST rate for an exact HSN/SAC code, or None if the code is not listed."""
        rows = self.df[self.df["hsn_code"] == str(hsn_code).strip()]
        if rows.empty:
            return None
        return float(rows.iloc[0]["rate"])
